"""Domain events for the InventoryItem aggregate.

These carry the post-mutation stock position so that an external publisher
(dashboard, alerting) can relay them without reading the store.
"""

from protean.fields import Boolean, DateTime, Decimal, Identifier, String

from ims.domain import ims


@ims.event(part_of="InventoryItem")
class OpeningBalanceSet:
    """The ledger of a variant at a warehouse was started."""

    __version__ = 1

    inventory_item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True)
    quantity = Decimal()
    movement_id = Identifier(required=True)
    actor_id = String()
    set_at = DateTime(required=True)


@ims.event(part_of="InventoryItem")
class StockLevelChanged:
    """Total or reserved stock changed.

    ``change_type`` is the movement type for ledger changes, or ``Reserved`` /
    ``Released`` for holds, which produce no movement.
    """

    __version__ = 1

    inventory_item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True)
    change_type = String(required=True)
    quantity = Decimal()
    total_stock = Decimal()
    reserved_stock = Decimal()
    available_stock = Decimal()
    movement_id = Identifier()
    reference_number = String()
    actor_id = String()
    changed_at = DateTime(required=True)


@ims.event(part_of="InventoryItem")
class LowStockDetected:
    """Available stock fell to or below the item's low-stock threshold."""

    __version__ = 1

    inventory_item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True)
    available_stock = Decimal()
    threshold = Decimal()
    out_of_stock = Boolean(default=False)
    detected_at = DateTime(required=True)


@ims.event(part_of="InventoryItem")
class InventorySettingsUpdated:
    __version__ = 1

    inventory_item_id = Identifier(required=True)
    tenant_id = String(required=True)
    allow_negative_stock = Boolean(default=False)
    low_stock_threshold = Decimal()
    expiry_date = DateTime()
    updated_at = DateTime(required=True)


@ims.event(part_of="InventoryItem")
class InventoryItemDeleted:
    __version__ = 1

    inventory_item_id = Identifier(required=True)
    tenant_id = String(required=True)
    deleted_by = String(required=True)
    deleted_at = DateTime(required=True)


@ims.event(part_of="InventoryItem")
class InventoryItemRestored:
    __version__ = 1

    inventory_item_id = Identifier(required=True)
    tenant_id = String(required=True)
    restored_at = DateTime(required=True)
