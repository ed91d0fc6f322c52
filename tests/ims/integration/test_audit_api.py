"""Integration tests for the audit endpoints via TestClient."""

from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ims.api.routes import audit_router, inventory_router


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(inventory_router)
    app.include_router(audit_router)
    return TestClient(app)


def _open_balance(client):
    response = client.post(
        "/inventory/opening-balance",
        json={
            "variant_id": "var-1001",
            "warehouse_id": "wh-main",
            "quantity": 40,
            "reason": "Initial count",
            "actor_id": "counter-1",
        },
    )
    assert response.status_code == 201
    return response.json()["positions"][0]["inventory_item_id"]


class TestAuditLogsEndpoint:
    def test_filters_by_actor(self, client):
        _open_balance(client)

        response = client.get("/audit/logs", params={"actor_id": "counter-1"})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["action"] == "Create"
        assert Decimal(body["items"][0]["details"]["quantity"]) == 40

    def test_search_param(self, client):
        _open_balance(client)
        response = client.get("/audit/logs", params={"search": "opening"})
        assert response.json()["total"] == 1

    def test_unknown_action(self, client):
        response = client.get("/audit/logs", params={"action": "Teleport"})
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_INPUT"


class TestEntityHistoryEndpoint:
    def test_item_history(self, client):
        item_id = _open_balance(client)
        client.post(
            "/inventory/sales",
            json={"variant_id": "var-1001", "warehouse_id": "wh-main", "quantity": 4, "reason": "Order shipped"},
        )

        response = client.get(f"/audit/history/InventoryItem/{item_id}")
        assert response.status_code == 200
        assert [e["action"] for e in response.json()["items"]] == ["Create", "StockMovement"]

    def test_unknown_entity_is_empty(self, client):
        response = client.get("/audit/history/InventoryItem/item-missing")
        assert response.status_code == 200
        assert response.json()["total"] == 0
