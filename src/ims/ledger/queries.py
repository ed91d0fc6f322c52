"""Ledger read side: movement history, refund validation and sale lookups."""

from protean.utils.globals import current_domain

from ims import settings
from ims.dto import MovementRecord, Page, RefundValidation, SaleInfo, SaleLine
from ims.errors import InvalidInput, InvalidQuantity, OriginalSaleNotFound, SaleNotFound
from ims.inventory.item import InventoryItem
from ims.ledger.movement import MovementType, StockMovement, normalize_reference
from ims.ledger.refunds import refund_position, refundable_share
from ims.shared.quantity import to_quantity
from ims.shared.timeutils import ensure_utc

MAX_PAGE_SIZE = 100


def _validate_page(page, page_size):
    if page < 1:
        raise InvalidInput("Page must be at least 1", field="page")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidInput(f"Page size must be between 1 and {MAX_PAGE_SIZE}", field="page_size")


def _required_reference(reference_number, field):
    reference_number = normalize_reference(reference_number)
    if not reference_number:
        raise InvalidInput("Reference number is required", field=field)
    return reference_number


def get_stock_movement_history(
    variant_id=None,
    warehouse_id=None,
    movement_type=None,
    from_date=None,
    to_date=None,
    reference_number=None,
    page=1,
    page_size=20,
    tenant_id=None,
) -> Page[MovementRecord]:
    """Movements matching the filters, newest first."""
    _validate_page(page, page_size)
    if movement_type is not None and movement_type not in {t.value for t in MovementType}:
        raise InvalidInput(f"Unknown movement type {movement_type}", field="movement_type")
    if from_date and to_date and ensure_utc(from_date) > ensure_utc(to_date):
        raise InvalidInput("from_date must not be after to_date", field="from_date")

    movements, total = current_domain.repository_for(StockMovement).get_movement_history(
        tenant_id or settings.default_tenant(),
        variant_id=variant_id,
        warehouse_id=warehouse_id,
        movement_type=movement_type,
        from_date=from_date,
        to_date=to_date,
        reference_number=reference_number,
        page=page,
        page_size=page_size,
    )
    return Page[MovementRecord](
        items=[MovementRecord.from_movement(m) for m in movements],
        total=total,
        page=page,
        page_size=page_size,
    )


def get_refund_validation(
    original_sale_reference, quantity, variant_id=None, warehouse_id=None, tenant_id=None
) -> RefundValidation:
    """Check a refund request against what is left of the original sale.

    With ``variant_id`` and ``warehouse_id`` the check is narrowed to that
    item's share of the sale, which is what ``RecordRefund`` enforces.
    An over-large request is not an error here: the answer carries
    ``can_refund=False`` and an explanation.
    """
    reference = _required_reference(original_sale_reference, "original_sale_reference")
    quantity = to_quantity(quantity)
    if quantity is None or quantity <= 0:
        raise InvalidQuantity("Requested quantity must be greater than zero")
    tenant_id = tenant_id or settings.default_tenant()

    movements = current_domain.repository_for(StockMovement).get_movements_by_reference(reference, tenant_id)
    position = refund_position(reference, movements)
    if not position.has_sale:
        raise OriginalSaleNotFound(f"No sale found for reference {reference}")
    if variant_id is not None or warehouse_id is not None:
        if variant_id is None or warehouse_id is None:
            raise InvalidInput("variant_id and warehouse_id must be given together", field="warehouse_id")
        item = current_domain.repository_for(InventoryItem).load(variant_id, warehouse_id, tenant_id)
        position = refundable_share(position, item)

    can_refund = quantity <= position.remaining
    message = (
        "Refund can be processed"
        if can_refund
        else f"Refund quantity {quantity:g} exceeds the refundable remainder {position.remaining:g}"
    )
    history = sorted(position.refunds, key=lambda m: m.occurred_at, reverse=True)
    return RefundValidation(
        original_sale_reference=reference,
        requested_quantity=quantity,
        original_sale_quantity=position.original_sale_quantity,
        total_refunded=position.total_refunded,
        remaining_refundable=position.remaining,
        original_sale_date=position.original_sale_date,
        refund_history=[MovementRecord.from_movement(m) for m in history],
        can_refund=can_refund,
        message=message,
    )


def get_sale_info(sale_reference, tenant_id=None) -> SaleInfo:
    reference = _required_reference(sale_reference, "sale_reference")
    movements = current_domain.repository_for(StockMovement).get_movements_by_reference(
        reference, tenant_id or settings.default_tenant()
    )
    position = refund_position(reference, movements)
    if not position.has_sale:
        raise SaleNotFound(f"No sale found for reference {reference}")

    sale = position.sale
    lines = []
    for item_id in position.sold_item_ids:
        share = position.for_item(item_id)
        first = share.sale
        lines.append(
            SaleLine(
                inventory_item_id=item_id,
                variant_id=str(first.variant_id),
                warehouse_id=str(first.warehouse_id),
                quantity=share.original_sale_quantity,
                total_refunded=share.total_refunded,
                remaining_refundable=share.remaining,
            )
        )
    return SaleInfo(
        sale_reference=reference,
        variant_id=str(sale.variant_id),
        warehouse_id=str(sale.warehouse_id),
        quantity=position.original_sale_quantity,
        sale_date=position.original_sale_date,
        total_refunded=position.total_refunded,
        remaining_refundable=position.remaining,
        lines=lines,
    )
