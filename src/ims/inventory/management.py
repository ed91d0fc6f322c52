"""Inventory item settings and soft deletion: commands and handler."""

from protean import handle
from protean.fields import Boolean, DateTime, Decimal, Identifier, String
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import StockPosition
from ims.errors import BusinessRuleViolation, InvalidInput, InventoryNotFound
from ims.inventory.common import tenant_of
from ims.inventory.item import InventoryItem


@ims.command(part_of="InventoryItem")
class UpdateInventorySettings:
    """Change the stock policy of an item. Omitted fields are left as they are."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    allow_negative_stock = Boolean()
    low_stock_threshold = Decimal()
    expiry_date = DateTime()
    clear_expiry_date = Boolean(default=False)


@ims.command(part_of="InventoryItem")
class DeleteInventoryItem:
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    deleted_by = String(required=True, max_length=100)


@ims.command(part_of="InventoryItem")
class RestoreInventoryItem:
    inventory_item_id = Identifier(required=True)


@ims.command_handler(part_of=InventoryItem)
class InventoryManagementHandler:
    @handle(UpdateInventorySettings)
    def update_settings(self, command):
        if (
            command.allow_negative_stock is None
            and command.low_stock_threshold is None
            and command.expiry_date is None
            and not command.clear_expiry_date
        ):
            raise InvalidInput("At least one setting must be provided")

        repo = current_domain.repository_for(InventoryItem)
        item = repo.load(command.variant_id, command.warehouse_id, tenant_of(command))

        if command.allow_negative_stock is not None:
            item.update_negative_stock_policy(command.allow_negative_stock)
        if command.low_stock_threshold is not None:
            item.update_low_stock_threshold(command.low_stock_threshold)
        if command.clear_expiry_date:
            item.update_expiry_date(None)
        elif command.expiry_date is not None:
            item.update_expiry_date(command.expiry_date)

        repo.add(item)
        return StockPosition.from_item(item)

    @handle(DeleteInventoryItem)
    def delete_item(self, command):
        repo = current_domain.repository_for(InventoryItem)
        item = repo.load(command.variant_id, command.warehouse_id, tenant_of(command))
        item.soft_delete(command.deleted_by)
        repo.add(item)
        return StockPosition.from_item(item)

    @handle(RestoreInventoryItem)
    def restore_item(self, command):
        repo = current_domain.repository_for(InventoryItem)
        item = repo.get_by_id(command.inventory_item_id, include_deleted=True)
        if item is None:
            raise InventoryNotFound(f"Inventory item {command.inventory_item_id} not found")
        active = repo.get_by_variant_and_warehouse(item.variant_id, item.warehouse_id, item.tenant_id)
        if active is not None and str(active.id) != str(item.id):
            raise BusinessRuleViolation("Another inventory item already tracks this variant at this warehouse")
        item.restore()
        repo.add(item)
        return StockPosition.from_item(item)
