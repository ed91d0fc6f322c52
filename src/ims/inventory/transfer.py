"""Warehouse transfers: double-entry stock moves between two items.

A transfer is two ledger rows written in one unit of work: a Credit on the
source item and a Debit on the destination item. Both ids are generated up
front so each row can carry the other's id in ``paired_movement_id``.
"""

from uuid import uuid4

from protean import handle
from protean.fields import Decimal, Identifier, String
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import StockMutation
from ims.errors import InvalidInput, SourceInventoryNotFound
from ims.inventory.common import persist, tenant_of
from ims.inventory.item import InventoryItem, require_positive


def new_transfer_reference() -> str:
    return f"TRF-{uuid4().hex[:12].upper()}"


def transfer_between(source, destination, quantity, reason, actor_id=None, reference_number=None):
    """Move ``quantity`` from ``source`` to ``destination``; returns (credit, debit)."""
    quantity = require_positive(quantity, "Transfer quantity")
    if str(source.warehouse_id) == str(destination.warehouse_id):
        raise InvalidInput("Source and destination warehouses must differ", field="destination_warehouse_id")
    if str(source.variant_id) != str(destination.variant_id):
        raise InvalidInput("Transfers must stay within one variant", field="variant_id")

    credit_id, debit_id = str(uuid4()), str(uuid4())
    credit = source.record_transfer_out(
        quantity,
        destination_warehouse_id=destination.warehouse_id,
        reason=reason,
        movement_id=credit_id,
        paired_movement_id=debit_id,
        actor_id=actor_id,
        reference_number=reference_number,
    )
    debit = destination.record_transfer_in(
        quantity,
        source_warehouse_id=source.warehouse_id,
        reason=reason,
        movement_id=debit_id,
        paired_movement_id=credit_id,
        actor_id=actor_id,
        reference_number=reference_number,
    )
    return credit, debit


@ims.command(part_of="InventoryItem")
class TransferStock:
    """Move stock of one variant from one warehouse to another."""

    variant_id = Identifier(required=True)
    source_warehouse_id = Identifier(required=True)
    destination_warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    quantity = Decimal()
    reason = String(required=True, max_length=255)
    actor_id = String(max_length=100)
    reference_number = String(max_length=100)  # Generated when omitted


@ims.command_handler(part_of=InventoryItem)
class TransferHandler:
    @handle(TransferStock)
    def transfer_stock(self, command):
        repo = current_domain.repository_for(InventoryItem)
        tenant_id = tenant_of(command)

        if str(command.source_warehouse_id) == str(command.destination_warehouse_id):
            raise InvalidInput("Source and destination warehouses must differ", field="destination_warehouse_id")

        source = repo.load(command.variant_id, command.source_warehouse_id, tenant_id, error=SourceInventoryNotFound)
        destination = repo.get_by_variant_and_warehouse(command.variant_id, command.destination_warehouse_id, tenant_id)
        if destination is None:
            destination = InventoryItem.create(
                variant_id=command.variant_id,
                warehouse_id=command.destination_warehouse_id,
                tenant_id=tenant_id,
                allow_negative_stock=source.allow_negative_stock,
                threshold=source.low_stock_threshold,
            )

        credit, debit = transfer_between(
            source,
            destination,
            command.quantity,
            reason=command.reason,
            actor_id=command.actor_id,
            reference_number=command.reference_number or new_transfer_reference(),
        )
        persist([source, destination], [credit, debit])
        return StockMutation.of([source, destination], [credit, debit])
