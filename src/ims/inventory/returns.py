"""Customer refunds: returned stock traced back to the original sale.

Refunded stock goes back into the item that recorded the sale. The refundable
remainder is that item's share of the sale, recomputed from the ledger inside
the refund's unit of work. Every refund against the share writes to the same
item, so two concurrent refunds collide on its version instead of both passing
the remainder check.
"""

import structlog
from protean import handle
from protean.fields import Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import StockMutation
from ims.errors import InvalidInput
from ims.inventory.common import parse_metadata, persist, tenant_of
from ims.inventory.item import InventoryItem, require_positive
from ims.ledger.movement import StockMovement, normalize_reference
from ims.ledger.refunds import assert_refundable, refund_position, refundable_share

logger = structlog.get_logger(__name__)


@ims.command(part_of="InventoryItem")
class RecordRefund:
    """Take refunded stock back in against an earlier sale."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    quantity = Decimal()
    reason = String(required=True, max_length=255)
    original_sale_reference = String(required=True, max_length=100)
    actor_id = String(max_length=100)
    movement_metadata = Text()


@ims.command_handler(part_of=InventoryItem)
class ReturnsHandler:
    @handle(RecordRefund)
    def record_refund(self, command):
        tenant_id = tenant_of(command)
        reference = normalize_reference(command.original_sale_reference)
        if not reference:
            raise InvalidInput("Original sale reference is required", field="original_sale_reference")
        quantity = require_positive(command.quantity, "Refund quantity")

        item = current_domain.repository_for(InventoryItem).load(command.variant_id, command.warehouse_id, tenant_id)

        movements = current_domain.repository_for(StockMovement).get_movements_by_reference(reference, tenant_id)
        share = refundable_share(refund_position(reference, movements), item)
        assert_refundable(share, quantity)

        movement = item.record_refund(
            quantity=quantity,
            reason=command.reason,
            original_sale_reference=reference,
            actor_id=command.actor_id,
            metadata=parse_metadata(command.movement_metadata),
        )
        persist([item], [movement])

        logger.info(
            "Refund recorded",
            original_sale_reference=reference,
            inventory_item_id=str(item.id),
            quantity=quantity,
            remaining_refundable=share.remaining - quantity,
        )
        return StockMutation.of([item], [movement])
