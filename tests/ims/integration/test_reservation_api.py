"""Integration tests for reservation and maintenance endpoints via TestClient."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ims.api.routes import inventory_router, maintenance_router, reservation_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(inventory_router)
    app.include_router(reservation_router)
    app.include_router(maintenance_router)
    client = TestClient(app)
    response = client.post(
        "/inventory/opening-balance",
        json={"variant_id": "var-1001", "warehouse_id": "wh-main", "quantity": 100, "reason": "Initial count"},
    )
    assert response.status_code == 201
    return client


def _in(minutes):
    return (datetime.now(UTC) + timedelta(minutes=minutes)).isoformat()


def _reserve(client, quantity=20, minutes=60, reference="ORD-1"):
    response = client.post(
        "/reservations",
        json={
            "variant_id": "var-1001",
            "warehouse_id": "wh-main",
            "quantity": quantity,
            "expires_at": _in(minutes),
            "reference_number": reference,
        },
    )
    assert response.status_code == 201
    return response.json()["reservation_id"]


def _available(client):
    return client.get("/inventory/levels/var-1001/wh-main").json()["available_stock"]


class TestReservationEndpoints:
    def test_create_and_get(self, client):
        reservation_id = _reserve(client, 30)

        response = client.get(f"/reservations/{reservation_id}")
        assert response.status_code == 200
        assert response.json()["status"] == "Active"
        assert _available(client) == 70

    def test_insufficient_stock(self, client):
        response = client.post(
            "/reservations",
            json={
                "variant_id": "var-1001",
                "warehouse_id": "wh-main",
                "quantity": 500,
                "expires_at": _in(60),
                "reference_number": "ORD-1",
            },
        )
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "INSUFFICIENT_STOCK"

    def test_modify(self, client):
        reservation_id = _reserve(client, 20)
        response = client.patch(f"/reservations/{reservation_id}", json={"quantity": 5})
        assert response.status_code == 200
        assert _available(client) == 95

    def test_cancel_twice(self, client):
        reservation_id = _reserve(client, 20)
        body = {"cancelled_by": "user-1"}

        assert client.post(f"/reservations/{reservation_id}/cancel", json=body).status_code == 200
        response = client.post(f"/reservations/{reservation_id}/cancel", json=body)

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "RESERVATION_NOT_ACTIVE"
        assert _available(client) == 100

    def test_fulfill(self, client):
        reservation_id = _reserve(client, 20)
        response = client.post(
            f"/reservations/{reservation_id}/fulfill",
            json={"quantity": 15, "used_by": "picker-1"},
        )
        assert response.json()["status"] == "PartiallyFulfilled"
        assert _available(client) == 85

    def test_list(self, client):
        _reserve(client, 5, reference="ORD-1")
        _reserve(client, 5, reference="ORD-2")
        response = client.get("/reservations", params={"status": "Active"})
        assert response.json()["total"] == 2

    def test_missing(self, client):
        response = client.get("/reservations/res-404")
        assert response.status_code == 404


class TestMaintenanceEndpoints:
    def test_expire_reservations(self, client):
        _reserve(client, 10, minutes=5)

        response = client.post(
            "/maintenance/expire-reservations",
            json={"as_of": _in(10)},
        )

        assert response.status_code == 200
        assert response.json()["expired"] == 1
        assert _available(client) == 100
