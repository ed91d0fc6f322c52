"""Stock sales: outbound movements against customer orders."""

from protean import handle
from protean.fields import Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import StockMutation
from ims.inventory.common import parse_metadata, persist, tenant_of
from ims.inventory.item import InventoryItem


@ims.command(part_of="InventoryItem")
class RecordSale:
    """Ship sold stock out of a warehouse."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    quantity = Decimal()
    reason = String(required=True, max_length=255)
    actor_id = String(max_length=100)
    reference_number = String(max_length=100)  # Sale reference; refunds point back at it
    movement_metadata = Text()


@ims.command_handler(part_of=InventoryItem)
class SalesHandler:
    @handle(RecordSale)
    def record_sale(self, command):
        item = current_domain.repository_for(InventoryItem).load(
            command.variant_id, command.warehouse_id, tenant_of(command)
        )
        movement = item.record_sale(
            quantity=command.quantity,
            reason=command.reason,
            actor_id=command.actor_id,
            reference_number=command.reference_number,
            metadata=parse_metadata(command.movement_metadata),
        )
        persist([item], [movement])
        return StockMutation.of([item], [movement])
