"""Warehouse management: commands and handler."""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import WarehouseView
from ims.errors import BusinessRuleViolation, InvalidInput
from ims.inventory.common import tenant_of
from ims.warehouse.warehouse import Warehouse


def _parse_address(raw):
    if not raw:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        address = json.loads(raw)
    except ValueError as exc:
        raise InvalidInput(f"Address is not valid JSON: {exc}", field="address") from exc
    if not isinstance(address, dict):
        raise InvalidInput("Address must be a JSON object", field="address")
    return address


@ims.command(part_of="Warehouse")
class CreateWarehouse:
    """Register a new warehouse."""

    tenant_id = String(max_length=50)
    name = String(required=True, max_length=255)
    code = String(required=True, max_length=50)
    description = Text()
    address = Text()  # JSON-encoded address
    capacity = Integer(default=0)


@ims.command(part_of="Warehouse")
class UpdateWarehouse:
    """Update warehouse details."""

    warehouse_id = Identifier(required=True)
    name = String(max_length=255)
    description = Text()
    address = Text()
    capacity = Integer()


@ims.command(part_of="Warehouse")
class DeactivateWarehouse:
    warehouse_id = Identifier(required=True)


@ims.command(part_of="Warehouse")
class DeleteWarehouse:
    warehouse_id = Identifier(required=True)
    deleted_by = String(required=True, max_length=100)


@ims.command_handler(part_of=Warehouse)
class WarehouseManagementHandler:
    @handle(CreateWarehouse)
    def create_warehouse(self, command):
        tenant_id = tenant_of(command)
        repo = current_domain.repository_for(Warehouse)
        if repo.get_by_code(command.code, tenant_id) is not None:
            raise BusinessRuleViolation(f"Warehouse code {command.code.upper()} is already in use", field="code")

        warehouse = Warehouse.create(
            tenant_id=tenant_id,
            name=command.name,
            code=command.code,
            address=_parse_address(command.address),
            description=command.description,
            capacity=command.capacity or 0,
        )
        repo.add(warehouse)
        return WarehouseView.from_warehouse(warehouse)

    @handle(UpdateWarehouse)
    def update_warehouse(self, command):
        repo = current_domain.repository_for(Warehouse)
        warehouse = repo.load(command.warehouse_id)
        warehouse.update_details(
            name=command.name,
            description=command.description,
            capacity=command.capacity,
            address=_parse_address(command.address),
        )
        repo.add(warehouse)
        return WarehouseView.from_warehouse(warehouse)

    @handle(DeactivateWarehouse)
    def deactivate_warehouse(self, command):
        repo = current_domain.repository_for(Warehouse)
        warehouse = repo.load(command.warehouse_id)
        warehouse.deactivate()
        repo.add(warehouse)
        return WarehouseView.from_warehouse(warehouse)

    @handle(DeleteWarehouse)
    def delete_warehouse(self, command):
        repo = current_domain.repository_for(Warehouse)
        warehouse = repo.load(command.warehouse_id)
        warehouse.soft_delete(command.deleted_by)
        repo.add(warehouse)
        return WarehouseView.from_warehouse(warehouse)
