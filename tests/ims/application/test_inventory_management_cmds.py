"""Application tests for item settings, soft delete and restore."""

from datetime import UTC, datetime, timedelta

from ims.inventory.item import InventoryItem
from ims.inventory.management import DeleteInventoryItem, RestoreInventoryItem, UpdateInventorySettings
from ims.inventory.sales import RecordSale
from ims.mediator import send
from ims.reservation.creation import CreateReservation
from protean import current_domain


def _settings(**fields):
    return send(UpdateInventorySettings, variant_id="var-1001", warehouse_id="wh-main", **fields)


def _repo():
    return current_domain.repository_for(InventoryItem)


class TestUpdateInventorySettings:
    def test_threshold(self, stocked):
        result = _settings(low_stock_threshold=25)
        assert result.value.low_stock_threshold == 25

    def test_allow_negative_then_oversell(self, stocked):
        _settings(allow_negative_stock=True)
        result = send(
            RecordSale,
            variant_id="var-1001",
            warehouse_id="wh-main",
            quantity=120,
            reason="Backorder",
        )
        assert result.is_success
        assert result.value.positions[0].total_stock == -20

    def test_cannot_disallow_while_negative(self, stocked):
        _settings(allow_negative_stock=True)
        send(RecordSale, variant_id="var-1001", warehouse_id="wh-main", quantity=120, reason="Backorder")

        result = _settings(allow_negative_stock=False)
        assert result.error_code == "BUSINESS_RULE_VIOLATION"

    def test_expiry_date(self, stocked):
        expiry = datetime.now(UTC) + timedelta(days=3)
        result = _settings(expiry_date=expiry)
        assert result.is_success
        item = _repo().get_by_id(stocked.id)
        assert item.is_near_expiry(days=7)
        assert not item.is_expired()

    def test_clear_expiry_date(self, stocked):
        _settings(expiry_date=datetime.now(UTC) + timedelta(days=3))
        _settings(clear_expiry_date=True)
        assert _repo().get_by_id(stocked.id).expiry_date is None

    def test_past_expiry_is_invalid(self, stocked):
        result = _settings(expiry_date=datetime.now(UTC) - timedelta(days=1))
        assert result.error_code == "INVALID_INPUT"

    def test_nothing_to_update(self, stocked):
        assert _settings().error_code == "INVALID_INPUT"


class TestDeleteAndRestore:
    def test_soft_delete_hides_item(self, stocked):
        result = send(DeleteInventoryItem, variant_id="var-1001", warehouse_id="wh-main", deleted_by="admin")

        assert result.is_success
        assert _repo().get_by_variant_and_warehouse("var-1001", "wh-main", "default") is None
        assert _repo().get_by_id(stocked.id, include_deleted=True).is_deleted is True

    def test_delete_with_reserved_stock_fails(self, stocked):
        send(
            CreateReservation,
            variant_id="var-1001",
            warehouse_id="wh-main",
            quantity=5,
            expires_at=datetime.now(UTC) + timedelta(hours=1),
            reference_number="ORD-1",
        )
        result = send(DeleteInventoryItem, variant_id="var-1001", warehouse_id="wh-main", deleted_by="admin")
        assert result.error_code == "BUSINESS_RULE_VIOLATION"

    def test_restore(self, stocked):
        send(DeleteInventoryItem, variant_id="var-1001", warehouse_id="wh-main", deleted_by="admin")

        result = send(RestoreInventoryItem, inventory_item_id=stocked.id)

        assert result.is_success
        assert _repo().get_by_variant_and_warehouse("var-1001", "wh-main", "default").total_stock == 100

    def test_restore_active_item_fails(self, stocked):
        result = send(RestoreInventoryItem, inventory_item_id=stocked.id)
        assert result.error_code == "BUSINESS_RULE_VIOLATION"

    def test_restore_unknown_item(self):
        result = send(RestoreInventoryItem, inventory_item_id="missing")
        assert result.error_code == "INVENTORY_NOT_FOUND"
