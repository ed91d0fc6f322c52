"""Warehouse aggregate: a physical location that holds inventory.

Inventory items reference warehouses by id only; the registry exists so that
callers can validate and describe locations.
"""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Integer, String, Text, ValueObject

from ims.domain import ims
from ims.errors import BusinessRuleViolation, InvalidInput
from ims.warehouse.events import (
    WarehouseCreated,
    WarehouseDeactivated,
    WarehouseDeleted,
    WarehouseUpdated,
)


@ims.value_object(part_of="Warehouse")
class WarehouseAddress:
    """Postal address of a warehouse."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@ims.aggregate
class Warehouse:
    """A location where stock is kept."""

    tenant_id = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    code = String(required=True, max_length=50)
    description = Text()
    address = ValueObject(WarehouseAddress)
    capacity = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    deleted_by = String(max_length=100)

    @classmethod
    def create(cls, tenant_id, name, code, address=None, description=None, capacity=0):
        """Register a new warehouse. Codes are stored upper-case."""
        code = (code or "").strip().upper()
        if not code:
            raise InvalidInput("Warehouse code is required", field="code")
        if isinstance(address, dict):
            address = WarehouseAddress(**address)

        now = datetime.now(UTC)
        warehouse = cls(
            tenant_id=tenant_id,
            name=name,
            code=code,
            description=description,
            address=address,
            capacity=capacity or 0,
            created_at=now,
            updated_at=now,
        )
        warehouse.raise_(
            WarehouseCreated(
                warehouse_id=str(warehouse.id),
                tenant_id=tenant_id,
                name=name,
                code=code,
                address=json.dumps(address.to_dict()) if address else None,
                capacity=str(warehouse.capacity),
                created_at=now,
            )
        )
        return warehouse

    def update_details(self, name=None, description=None, capacity=None, address=None):
        """Update name, description, capacity and/or address."""
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if capacity is not None:
            self.capacity = capacity
        if address is not None:
            self.address = WarehouseAddress(**address) if isinstance(address, dict) else address
        self.updated_at = datetime.now(UTC)
        self.raise_(
            WarehouseUpdated(
                warehouse_id=str(self.id),
                tenant_id=self.tenant_id,
                name=self.name,
                capacity=str(self.capacity),
                updated_at=self.updated_at,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise BusinessRuleViolation("Warehouse is already inactive", field="warehouse")
        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(
            WarehouseDeactivated(warehouse_id=str(self.id), tenant_id=self.tenant_id, deactivated_at=self.updated_at)
        )

    def soft_delete(self, deleted_by):
        if not deleted_by:
            raise InvalidInput("Deleted by is required", field="deleted_by")
        if self.is_deleted:
            raise BusinessRuleViolation("Warehouse is already deleted", field="warehouse")
        now = datetime.now(UTC)
        self.is_deleted = True
        self.is_active = False
        self.deleted_at = now
        self.deleted_by = deleted_by
        self.updated_at = now
        self.raise_(
            WarehouseDeleted(warehouse_id=str(self.id), tenant_id=self.tenant_id, deleted_by=deleted_by, deleted_at=now)
        )
