"""Application tests for the read-side queries."""

from datetime import UTC, datetime, timedelta

from ims.inventory.opening_balance import SetOpeningBalance
from ims.inventory.queries import get_bulk_inventory_levels, get_inventory_level, get_low_stock_variants
from ims.inventory.receiving import RecordPurchase
from ims.inventory.returns import RecordRefund
from ims.inventory.sales import RecordSale
from ims.ledger.queries import get_refund_validation, get_sale_info, get_stock_movement_history
from ims.mediator import ask, send


def _open(variant_id, quantity, warehouse_id="wh-main", threshold=10):
    result = send(
        SetOpeningBalance,
        variant_id=variant_id,
        warehouse_id=warehouse_id,
        quantity=quantity,
        low_stock_threshold=threshold,
        reason="Initial count",
    )
    assert result.is_success, result.error_message


def _sell(quantity, reference="SALE-1"):
    send(
        RecordSale,
        variant_id="var-1001",
        warehouse_id="wh-main",
        quantity=quantity,
        reason="Order shipped",
        reference_number=reference,
    )


def _refund(quantity, reference="SALE-1"):
    send(
        RecordRefund,
        variant_id="var-1001",
        warehouse_id="wh-main",
        quantity=quantity,
        reason="Customer return",
        original_sale_reference=reference,
    )


class TestInventoryLevels:
    def test_single_level(self, stocked):
        result = ask(get_inventory_level, "var-1001", "wh-main")
        assert result.value.total_stock == 100
        assert result.value.available_stock == 100

    def test_missing_level(self):
        result = ask(get_inventory_level, "var-404", "wh-main")
        assert result.error_code == "INVENTORY_NOT_FOUND"

    def test_bulk_levels(self):
        _open("var-a", 5)
        _open("var-b", 7)
        _open("var-b", 9, warehouse_id="wh-east")
        _open("var-c", 1)

        result = ask(get_bulk_inventory_levels, ["var-a", "var-b", "var-404"])

        assert [(p.variant_id, p.warehouse_id) for p in result.value] == [
            ("var-a", "wh-main"),
            ("var-b", "wh-east"),
            ("var-b", "wh-main"),
        ]

    def test_bulk_levels_for_one_warehouse(self):
        _open("var-b", 7)
        _open("var-b", 9, warehouse_id="wh-east")
        result = ask(get_bulk_inventory_levels, ["var-b"], warehouse_id="wh-east")
        assert [p.total_stock for p in result.value] == [9]

    def test_bulk_levels_need_variants(self):
        assert ask(get_bulk_inventory_levels, []).error_code == "INVALID_INPUT"


class TestLowStock:
    def test_emptiest_first(self):
        _open("var-a", 8)
        _open("var-b", 0)
        _open("var-c", 50)

        result = ask(get_low_stock_variants)

        assert [p.variant_id for p in result.value] == ["var-b", "var-a"]

    def test_exclude_out_of_stock(self):
        _open("var-a", 8)
        _open("var-b", 0)
        result = ask(get_low_stock_variants, include_out_of_stock=False)
        assert [p.variant_id for p in result.value] == ["var-a"]

    def test_threshold_override(self):
        _open("var-a", 8)
        _open("var-c", 50)
        result = ask(get_low_stock_variants, threshold=60)
        assert {p.variant_id for p in result.value} == {"var-a", "var-c"}

    def test_max_results_bounds(self):
        assert ask(get_low_stock_variants, max_results=0).error_code == "INVALID_INPUT"
        assert ask(get_low_stock_variants, max_results=501).error_code == "INVALID_INPUT"


class TestMovementHistory:
    def test_newest_first_and_paged(self, stocked):
        for quantity in (1, 2, 3):
            send(
                RecordPurchase,
                variant_id="var-1001",
                warehouse_id="wh-main",
                quantity=quantity,
                reason="PO received",
            )

        page = ask(get_stock_movement_history, variant_id="var-1001", page=1, page_size=2).value

        assert page.total == 4
        assert page.total_pages == 2
        assert page.has_next is True
        assert [m.quantity for m in page.items] == [3, 2]

    def test_filter_by_type(self, stocked):
        _sell(5)
        page = ask(get_stock_movement_history, movement_type="Sale").value
        assert [m.movement_type for m in page.items] == ["Sale"]

    def test_filter_by_date_range(self, stocked):
        future = datetime.now(UTC) + timedelta(days=1)
        page = ask(get_stock_movement_history, from_date=future).value
        assert page.total == 0

    def test_page_size_bounds(self):
        assert ask(get_stock_movement_history, page_size=101).error_code == "INVALID_INPUT"
        assert ask(get_stock_movement_history, page=0).error_code == "INVALID_INPUT"

    def test_unknown_type(self):
        assert ask(get_stock_movement_history, movement_type="Theft").error_code == "INVALID_INPUT"


class TestRefundValidation:
    def test_reports_remainder(self, stocked):
        _sell(10)
        _refund(6)

        result = ask(get_refund_validation, "SALE-1", 4).value

        assert result.can_refund is True
        assert result.original_sale_quantity == 10
        assert result.total_refunded == 6
        assert result.remaining_refundable == 4
        assert len(result.refund_history) == 1

    def test_over_large_request(self, stocked):
        _sell(10)
        result = ask(get_refund_validation, "SALE-1", 11).value
        assert result.can_refund is False
        assert "exceeds" in result.message

    def test_unknown_sale(self):
        assert ask(get_refund_validation, "SALE-404", 1).error_code == "ORIGINAL_SALE_NOT_FOUND"

    def test_non_positive_quantity(self):
        assert ask(get_refund_validation, "SALE-1", 0).error_code == "INVALID_QUANTITY"


class TestSaleInfo:
    def test_sale_info(self, stocked):
        _sell(10)
        _refund(3)

        info = ask(get_sale_info, "SALE-1").value

        assert info.variant_id == "var-1001"
        assert info.warehouse_id == "wh-main"
        assert info.quantity == 10
        assert info.total_refunded == 3
        assert info.remaining_refundable == 7

    def test_missing_sale(self):
        assert ask(get_sale_info, "SALE-404").error_code == "SALE_NOT_FOUND"
