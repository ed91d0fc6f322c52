"""Opening balance: command and handler that start an item's ledger."""

from protean import handle
from protean.fields import Boolean, DateTime, Decimal, Identifier, String
from protean.utils.globals import current_domain

from ims.catalogue.product import Product
from ims.domain import ims
from ims.dto import StockMutation
from ims.inventory.common import persist, tenant_of
from ims.inventory.item import InventoryItem


@ims.command(part_of="InventoryItem")
class SetOpeningBalance:
    """Record the initial stock of a variant at a warehouse."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    quantity = Decimal()
    reason = String(required=True, max_length=255)
    actor_id = String(max_length=100)
    reference_number = String(max_length=100)
    allow_negative_stock = Boolean(default=False)
    low_stock_threshold = Decimal(min_value=0)
    expiry_date = DateTime()


@ims.command_handler(part_of=InventoryItem)
class OpeningBalanceHandler:
    @handle(SetOpeningBalance)
    def set_opening_balance(self, command):
        repo = current_domain.repository_for(InventoryItem)
        tenant_id = tenant_of(command)

        item = repo.get_by_variant_and_warehouse(command.variant_id, command.warehouse_id, tenant_id)
        if item is None:
            current_domain.repository_for(Product).load_variant(command.variant_id, tenant_id)
            item = InventoryItem.create(
                variant_id=command.variant_id,
                warehouse_id=command.warehouse_id,
                tenant_id=tenant_id,
                allow_negative_stock=command.allow_negative_stock,
                threshold=command.low_stock_threshold,
                expiry_date=command.expiry_date,
            )

        movement = item.set_opening_balance(
            quantity=command.quantity,
            reason=command.reason,
            actor_id=command.actor_id,
            reference_number=command.reference_number,
        )
        persist([item], [movement])
        return StockMutation.of([item], [movement])
