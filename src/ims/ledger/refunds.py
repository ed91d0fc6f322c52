"""Refund policy: how much of an original sale can still be refunded.

The remainder is always recomputed from the ledger rows that share the sale's
reference number; nothing caches it. Callers that go on to write a refund must
run this inside the same unit of work as the write.

A refund goes back into an item that recorded a sale under the reference, and
is limited by what that item sold minus what was already refunded into it.
For the usual single-item reference this is the whole sale. Because every
refund that draws on an item's share also writes to that item, concurrent
refunds against one sale collide on the item's version.
"""

from dataclasses import dataclass, field
from datetime import datetime

from ims.errors import OriginalSaleNotFound, RefundExceedsSale
from ims.ledger.movement import MovementType, StockMovement
from ims.shared.quantity import ZERO, to_quantity


@dataclass(frozen=True)
class RefundPosition:
    reference_number: str
    sales: list[StockMovement]
    refunds: list[StockMovement] = field(default_factory=list)

    @property
    def has_sale(self) -> bool:
        return bool(self.sales)

    @property
    def original_sale_quantity(self):
        return abs(sum((m.quantity for m in self.sales if m.quantity < 0), ZERO))

    @property
    def total_refunded(self):
        return sum((m.quantity for m in self.refunds if m.quantity > 0), ZERO)

    @property
    def remaining(self):
        return max(self.original_sale_quantity - self.total_refunded, ZERO)

    @property
    def original_sale_date(self) -> datetime | None:
        return min((m.occurred_at for m in self.sales), default=None)

    @property
    def sale(self) -> StockMovement | None:
        """The earliest sale under the reference."""
        return min(self.sales, key=lambda m: m.occurred_at) if self.sales else None

    @property
    def sold_item_ids(self) -> list[str]:
        """Items that recorded a sale under the reference, in order of first sale."""
        ids = []
        for movement in sorted(self.sales, key=lambda m: m.occurred_at):
            if str(movement.inventory_item_id) not in ids:
                ids.append(str(movement.inventory_item_id))
        return ids

    def for_item(self, inventory_item_id) -> "RefundPosition":
        """The part of the sale recorded by one item."""
        item_id = str(inventory_item_id)
        return RefundPosition(
            reference_number=self.reference_number,
            sales=[m for m in self.sales if str(m.inventory_item_id) == item_id],
            refunds=[m for m in self.refunds if str(m.inventory_item_id) == item_id],
        )


def refund_position(reference_number: str, movements: list[StockMovement]) -> RefundPosition:
    """Split the movements for ``reference_number`` into sales and refunds."""
    sales = [m for m in movements if m.movement_type == MovementType.SALE.value]
    refunds = [m for m in movements if m.movement_type == MovementType.REFUND.value]
    return RefundPosition(reference_number=reference_number, sales=sales, refunds=refunds)


def assert_refundable(position: RefundPosition, quantity) -> None:
    """Raise unless ``quantity`` fits in what is left of the original sale."""
    quantity = to_quantity(quantity)
    if not position.has_sale:
        raise OriginalSaleNotFound(f"No sale found for reference {position.reference_number}")
    if quantity > position.remaining:
        raise RefundExceedsSale(
            f"Refund quantity {quantity:g} exceeds the refundable remainder {position.remaining:g} "
            f"(sold {position.original_sale_quantity:g}, already refunded {position.total_refunded:g})"
        )


def refundable_share(position: RefundPosition, item) -> RefundPosition:
    """Narrow ``position`` to ``item``, which must have sold under the reference."""
    if not position.has_sale:
        raise OriginalSaleNotFound(f"No sale found for reference {position.reference_number}")
    share = position.for_item(item.id)
    if not share.has_sale:
        raise OriginalSaleNotFound(
            f"Sale {position.reference_number} was not recorded for variant {item.variant_id} "
            f"at warehouse {item.warehouse_id}"
        )
    return share
