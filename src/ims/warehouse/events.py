"""Domain events for the Warehouse aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from ims.domain import ims


@ims.event(part_of="Warehouse")
class WarehouseCreated:
    """A new warehouse was registered."""

    __version__ = 1

    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True)
    name = String(required=True)
    code = String(required=True)
    address = Text()  # JSON-serialized address
    capacity = Identifier(required=True)  # Stored as string so a zero capacity survives validation
    created_at = DateTime(required=True)


@ims.event(part_of="Warehouse")
class WarehouseUpdated:
    """Warehouse details were updated."""

    __version__ = 1

    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True)
    name = String(required=True)
    capacity = Identifier(required=True)
    updated_at = DateTime(required=True)


@ims.event(part_of="Warehouse")
class WarehouseDeactivated:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True)
    deactivated_at = DateTime(required=True)


@ims.event(part_of="Warehouse")
class WarehouseDeleted:
    __version__ = 1

    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True)
    deleted_by = String(required=True)
    deleted_at = DateTime(required=True)
