"""Application tests for the reservation lifecycle commands."""

from datetime import UTC, datetime, timedelta

from ims.inventory.item import InventoryItem
from ims.inventory.receiving import RecordPurchase
from ims.ledger.movement import MovementType, StockMovement
from ims.mediator import send
from ims.reservation.cancellation import CancelReservation
from ims.reservation.creation import CreateReservation
from ims.reservation.fulfillment import FulfillReservation
from ims.reservation.modification import ModifyReservation
from ims.reservation.reservation import Reservation, ReservationStatus
from protean import current_domain


def _in(minutes):
    return datetime.now(UTC) + timedelta(minutes=minutes)


def _item():
    return current_domain.repository_for(InventoryItem).get_by_variant_and_warehouse("var-1001", "wh-main", "default")


def _reservation(reservation_id):
    return current_domain.repository_for(Reservation).get(reservation_id)


def _reserve(quantity=20, **overrides):
    fields = {
        "variant_id": "var-1001",
        "warehouse_id": "wh-main",
        "quantity": quantity,
        "expires_at": _in(60),
        "reference_number": "ORD-1",
        "created_by": "user-1",
    }
    fields.update(overrides)
    return send(CreateReservation, **fields)


def _reserved_id(quantity=20, **overrides):
    result = _reserve(quantity, **overrides)
    assert result.is_success, result.error_message
    return result.value.reservation_id


class TestCreateReservation:
    def test_holds_stock(self, stocked):
        result = _reserve(30)

        assert result.is_success
        assert result.value.status == ReservationStatus.ACTIVE.value
        item = _item()
        assert item.reserved_stock == 30
        assert item.available_stock == 70

    def test_purchase_then_reserve(self, stocked):
        send(
            RecordPurchase,
            variant_id="var-1001",
            warehouse_id="wh-main",
            quantity=50,
            reason="PO received",
        )
        _reserve(30)

        item = _item()
        assert (item.total_stock, item.reserved_stock, item.available_stock) == (150, 30, 120)

    def test_insufficient_stock(self, stocked):
        result = _reserve(101)
        assert result.error_code == "INSUFFICIENT_STOCK"
        assert _item().reserved_stock == 0
        assert current_domain.repository_for(Reservation).search("default")[1] == 0

    def test_expiry_in_past_is_invalid(self, stocked):
        result = _reserve(5, expires_at=_in(-1))
        assert result.error_code == "INVALID_INPUT"
        assert _item().reserved_stock == 0

    def test_unknown_item(self):
        assert _reserve(5).error_code == "INVENTORY_NOT_FOUND"

    def test_reservation_writes_no_ledger_line(self, stocked):
        _reserve(5)
        assert len(current_domain.repository_for(StockMovement).get_ledger(_item().id)) == 1


class TestModifyReservation:
    def test_decrease_releases_difference(self, stocked):
        reservation_id = _reserved_id(20)

        result = send(ModifyReservation, reservation_id=reservation_id, quantity=5, modified_by="user-2")

        assert result.is_success
        assert _item().reserved_stock == 5
        assert _reservation(reservation_id).quantity == 5

    def test_increase_beyond_available_fails(self, stocked):
        reservation_id = _reserved_id(20)

        result = send(ModifyReservation, reservation_id=reservation_id, quantity=121)

        assert result.error_code == "INSUFFICIENT_STOCK"
        assert _item().reserved_stock == 20
        assert _reservation(reservation_id).quantity == 20

    def test_increase_within_available(self, stocked):
        reservation_id = _reserved_id(20)
        send(ModifyReservation, reservation_id=reservation_id, quantity=100)
        assert _item().reserved_stock == 100

    def test_extend_and_reason(self, stocked):
        reservation_id = _reserved_id(20)
        new_expiry = _in(600)

        result = send(ModifyReservation, reservation_id=reservation_id, expires_at=new_expiry, reason="Hold longer")

        assert result.is_success
        reservation = _reservation(reservation_id)
        assert reservation.reason == "Hold longer"
        assert reservation.quantity == 20

    def test_nothing_to_change(self, stocked):
        reservation_id = _reserved_id(20)
        result = send(ModifyReservation, reservation_id=reservation_id)
        assert result.error_code == "INVALID_INPUT"

    def test_unknown_reservation(self, stocked):
        result = send(ModifyReservation, reservation_id="res-404", quantity=1)
        assert result.error_code == "RESERVATION_NOT_FOUND"


class TestCancelReservation:
    def test_cancel_releases_stock(self, stocked):
        reservation_id = _reserved_id(20)

        result = send(CancelReservation, reservation_id=reservation_id, cancelled_by="user-2", reason="Abandoned")

        assert result.is_success
        assert result.value.status == ReservationStatus.CANCELLED.value
        assert _item().reserved_stock == 0

    def test_cancel_twice_does_not_release_twice(self, stocked):
        first = _reserved_id(20, reference_number="ORD-1")
        _reserved_id(10, reference_number="ORD-2")
        send(CancelReservation, reservation_id=first, cancelled_by="user-2")

        result = send(CancelReservation, reservation_id=first, cancelled_by="user-2")

        assert result.error_code == "RESERVATION_NOT_ACTIVE"
        assert _item().reserved_stock == 10

    def test_modify_after_cancel_fails(self, stocked):
        reservation_id = _reserved_id(20)
        send(CancelReservation, reservation_id=reservation_id, cancelled_by="user-2")

        result = send(ModifyReservation, reservation_id=reservation_id, quantity=5)
        assert result.error_code == "RESERVATION_NOT_ACTIVE"


class TestFulfillReservation:
    def test_full_fulfilment_records_sale(self, stocked):
        reservation_id = _reserved_id(20)

        result = send(FulfillReservation, reservation_id=reservation_id, quantity=20, used_by="picker-1")

        assert result.value.status == ReservationStatus.FULFILLED.value
        item = _item()
        assert item.total_stock == 80
        assert item.reserved_stock == 0

        sale = current_domain.repository_for(StockMovement).get_ledger(item.id)[-1]
        assert sale.movement_type == MovementType.SALE.value
        assert sale.reference_number == "ORD-1"
        assert sale.metadata_dict == {"reservation_id": reservation_id}

    def test_partial_fulfilment_releases_the_rest(self, stocked):
        reservation_id = _reserved_id(20)

        result = send(FulfillReservation, reservation_id=reservation_id, quantity=12, used_by="picker-1")

        assert result.value.status == ReservationStatus.PARTIALLY_FULFILLED.value
        item = _item()
        assert item.total_stock == 88
        assert item.reserved_stock == 0
        assert item.available_stock == 88

    def test_fulfilling_more_than_reserved_fails(self, stocked):
        reservation_id = _reserved_id(20)
        result = send(FulfillReservation, reservation_id=reservation_id, quantity=21, used_by="picker-1")

        assert result.error_code == "INVALID_QUANTITY"
        item = _item()
        assert (item.total_stock, item.reserved_stock) == (100, 20)
