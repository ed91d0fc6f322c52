"""Application tests for refunds against an original sale."""

from decimal import Decimal

from ims.inventory.item import InventoryItem
from ims.inventory.opening_balance import SetOpeningBalance
from ims.inventory.returns import RecordRefund
from ims.inventory.sales import RecordSale
from ims.ledger.movement import MovementType, StockMovement
from ims.ledger.queries import get_refund_validation, get_sale_info
from ims.mediator import ask, send
from protean import current_domain


def _sell(quantity=10, reference="SALE-1", warehouse_id="wh-main"):
    result = send(
        RecordSale,
        variant_id="var-1001",
        warehouse_id=warehouse_id,
        quantity=quantity,
        reason="Order shipped",
        reference_number=reference,
    )
    assert result.is_success, result.error_message


def _refund(quantity, reference="SALE-1", warehouse_id="wh-main"):
    return send(
        RecordRefund,
        variant_id="var-1001",
        warehouse_id=warehouse_id,
        quantity=quantity,
        reason="Customer return",
        original_sale_reference=reference,
    )


def _total(warehouse_id="wh-main"):
    item = current_domain.repository_for(InventoryItem).get_by_variant_and_warehouse(
        "var-1001", warehouse_id, "default"
    )
    return item.total_stock


def _open(warehouse_id, quantity=50):
    result = send(
        SetOpeningBalance,
        variant_id="var-1001",
        warehouse_id=warehouse_id,
        quantity=quantity,
        reason="Initial count",
    )
    assert result.is_success, result.error_message


class TestRecordRefund:
    def test_refund_sequence_against_one_sale(self, stocked):
        _sell(10)
        assert _total() == 90

        over = _refund(11)
        assert over.error_code == "REFUND_EXCEEDS_SALE"
        assert _total() == 90

        assert _refund(6).is_success
        assert _refund(4).is_success
        assert _total() == 100

        third = _refund(1)
        assert third.error_code == "REFUND_EXCEEDS_SALE"
        assert _total() == 100

    def test_partial_refunds_then_overshoot(self, stocked):
        _sell(10)
        assert _refund(6).is_success
        assert _refund(5).error_code == "REFUND_EXCEEDS_SALE"
        assert _refund(4).is_success

    def test_refund_movement_carries_sale_reference(self, stocked):
        _sell(10)
        result = _refund(3)

        movement = result.value.movements[0]
        assert movement.movement_type == MovementType.REFUND.value
        assert movement.reference_number == "SALE-1"
        assert movement.entry_type == "Debit"

        by_reference = current_domain.repository_for(StockMovement).get_movements_by_reference("SALE-1", "default")
        assert [m.movement_type for m in by_reference] == ["Sale", "Refund"]

    def test_unknown_sale_reference(self, stocked):
        result = _refund(1, reference="SALE-404")
        assert result.error_code == "ORIGINAL_SALE_NOT_FOUND"
        assert _total() == 100

    def test_non_positive_quantity_is_checked_first(self, stocked):
        result = _refund(0, reference="SALE-404")
        assert result.error_code == "INVALID_QUANTITY"

    def test_sales_are_tracked_per_reference(self, stocked):
        _sell(5, reference="SALE-A")
        _sell(3, reference="SALE-B")
        assert _refund(4, reference="SALE-B").error_code == "REFUND_EXCEEDS_SALE"
        assert _refund(5, reference="SALE-A").is_success


class TestRefundTarget:
    def test_refund_into_a_warehouse_that_never_sold(self, stocked):
        _open("wh-b")
        _sell(10)

        result = _refund(4, warehouse_id="wh-b")
        assert result.error_code == "ORIGINAL_SALE_NOT_FOUND"
        assert "wh-b" in result.error_message
        assert _total("wh-b") == 50
        assert _refund(10).is_success

    def test_reference_sold_from_two_warehouses(self, stocked):
        _open("wh-b")
        _sell(5, reference="SALE-M")
        _sell(3, reference="SALE-M", warehouse_id="wh-b")

        assert _refund(4, reference="SALE-M", warehouse_id="wh-b").error_code == "REFUND_EXCEEDS_SALE"
        assert _refund(3, reference="SALE-M", warehouse_id="wh-b").is_success
        assert _refund(5, reference="SALE-M").is_success
        assert _refund(1, reference="SALE-M").error_code == "REFUND_EXCEEDS_SALE"
        assert _total() == 100
        assert _total("wh-b") == 50

    def test_each_refund_moves_the_sold_item_version(self, stocked):
        _sell(10)
        before = current_domain.repository_for(InventoryItem).get(stocked.id)._version

        assert _refund(2).is_success
        after = current_domain.repository_for(InventoryItem).get(stocked.id)._version
        assert after > before


class TestFractionalRefunds:
    def test_tenths_add_up_to_the_sale(self, stocked):
        _sell(Decimal("0.3"), reference="SALE-F")
        assert _total() == Decimal("99.7")

        assert _refund(Decimal("0.1"), reference="SALE-F").is_success
        assert _refund(Decimal("0.2"), reference="SALE-F").is_success
        assert _refund(Decimal("0.1"), reference="SALE-F").error_code == "REFUND_EXCEEDS_SALE"
        assert _total() == Decimal("100")

    def test_float_quantities_are_exact(self, stocked):
        _sell(0.3, reference="SALE-F")
        assert _refund(0.1, reference="SALE-F").is_success
        assert _refund(0.2, reference="SALE-F").is_success
        assert _total() == 100


class TestRefundQueries:
    def test_validation_narrowed_to_an_item(self, stocked):
        _open("wh-b")
        _sell(5, reference="SALE-M")
        _sell(3, reference="SALE-M", warehouse_id="wh-b")

        whole = ask(get_refund_validation, "SALE-M", 6).value
        assert whole.can_refund
        assert whole.remaining_refundable == 8

        share = ask(get_refund_validation, "SALE-M", 6, variant_id="var-1001", warehouse_id="wh-b").value
        assert not share.can_refund
        assert share.original_sale_quantity == 3
        assert share.remaining_refundable == 3

    def test_validation_needs_both_variant_and_warehouse(self, stocked):
        _sell(5)
        result = ask(get_refund_validation, "SALE-1", 1, variant_id="var-1001")
        assert result.error_code == "INVALID_INPUT"

    def test_validation_for_an_item_that_never_sold(self, stocked):
        _open("wh-b")
        _sell(5)
        result = ask(get_refund_validation, "SALE-1", 1, variant_id="var-1001", warehouse_id="wh-b")
        assert result.error_code == "ORIGINAL_SALE_NOT_FOUND"

    def test_sale_info_lists_every_line(self, stocked):
        _open("wh-b")
        _sell(5, reference="SALE-M")
        _sell(3, reference="SALE-M", warehouse_id="wh-b")
        assert _refund(1, reference="SALE-M", warehouse_id="wh-b").is_success

        info = ask(get_sale_info, "SALE-M").value
        assert info.warehouse_id == "wh-main"
        assert info.quantity == 8
        assert info.remaining_refundable == 7
        assert [(line.warehouse_id, line.quantity, line.remaining_refundable) for line in info.lines] == [
            ("wh-main", 5, 5),
            ("wh-b", 3, 2),
        ]
