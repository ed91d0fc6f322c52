"""Reservation creation: command and handler."""

from protean import handle
from protean.fields import DateTime, Decimal, Identifier, String
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import ReservationView
from ims.inventory.common import tenant_of
from ims.inventory.item import InventoryItem
from ims.reservation.common import persist
from ims.reservation.reservation import Reservation


@ims.command(part_of="Reservation")
class CreateReservation:
    """Hold available stock of a variant at a warehouse until ``expires_at``."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(max_length=50)
    quantity = Decimal()
    expires_at = DateTime(required=True)
    reference_number = String(required=True, max_length=100)
    reason = String(max_length=500)
    created_by = String(max_length=100)


@ims.command_handler(part_of=Reservation)
class ReservationCreationHandler:
    @handle(CreateReservation)
    def create_reservation(self, command):
        item = current_domain.repository_for(InventoryItem).load(
            command.variant_id, command.warehouse_id, tenant_of(command)
        )
        reservation = Reservation.create(
            item,
            quantity=command.quantity,
            expires_at=command.expires_at,
            reference_number=command.reference_number,
            reason=command.reason,
            created_by=command.created_by,
        )
        item.reserve_stock(command.quantity, reservation.id)
        persist(reservation, item)
        return ReservationView.from_reservation(reservation)
