"""Stock adjustments and write-offs: commands and handler."""

from protean import handle
from protean.fields import Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import StockMutation
from ims.inventory.common import parse_metadata, persist, tenant_of
from ims.inventory.item import InventoryItem


@ims.command(part_of="InventoryItem")
class RecordAdjustment:
    """Correct stock by a signed quantity (cycle count, found goods, corrections)."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    quantity = Decimal()  # Positive adds, negative removes
    reason = String(required=True, max_length=255)
    actor_id = String(max_length=100)
    reference_number = String(max_length=100)
    movement_metadata = Text()


@ims.command(part_of="InventoryItem")
class RecordWriteOff:
    """Remove damaged, expired or lost stock."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    quantity = Decimal()
    reason = String(required=True, max_length=255)
    actor_id = String(max_length=100)
    reference_number = String(max_length=100)
    movement_metadata = Text()


@ims.command_handler(part_of=InventoryItem)
class AdjustmentHandler:
    @handle(RecordAdjustment)
    def record_adjustment(self, command):
        item = current_domain.repository_for(InventoryItem).load(
            command.variant_id, command.warehouse_id, tenant_of(command)
        )
        movement = item.record_adjustment(
            quantity=command.quantity,
            reason=command.reason,
            actor_id=command.actor_id,
            reference_number=command.reference_number,
            metadata=parse_metadata(command.movement_metadata),
        )
        persist([item], [movement])
        return StockMutation.of([item], [movement])

    @handle(RecordWriteOff)
    def record_write_off(self, command):
        item = current_domain.repository_for(InventoryItem).load(
            command.variant_id, command.warehouse_id, tenant_of(command)
        )
        movement = item.record_write_off(
            quantity=command.quantity,
            reason=command.reason,
            actor_id=command.actor_id,
            reference_number=command.reference_number,
            metadata=parse_metadata(command.movement_metadata),
        )
        persist([item], [movement])
        return StockMutation.of([item], [movement])
