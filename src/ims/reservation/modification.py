"""Reservation changes: quantity, expiry and reason of an active hold."""

from protean import handle
from protean.fields import DateTime, Decimal, Identifier, String

from ims.domain import ims
from ims.dto import ReservationView
from ims.errors import InvalidInput, InvalidQuantity
from ims.reservation.common import load_reservation_and_item, persist
from ims.reservation.reservation import Reservation


@ims.command(part_of="Reservation")
class ModifyReservation:
    """Change an active reservation. At least one change must be given."""

    reservation_id = Identifier(required=True)
    quantity = Decimal()
    expires_at = DateTime()
    reason = String(max_length=500)
    modified_by = String(max_length=100)


@ims.command_handler(part_of=Reservation)
class ReservationModificationHandler:
    @handle(ModifyReservation)
    def modify_reservation(self, command):
        if command.quantity is None and command.expires_at is None and command.reason is None:
            raise InvalidInput("At least one of quantity, expires_at or reason must be provided")
        if command.quantity is not None and command.quantity <= 0:
            raise InvalidQuantity("Reservation quantity must be greater than zero")

        reservation, item = load_reservation_and_item(command.reservation_id)
        reservation.assert_active()

        if command.quantity is not None and command.quantity != reservation.quantity:
            # Item first: an increase must pass the availability check before the hold grows
            delta = command.quantity - reservation.quantity
            if delta > 0:
                item.reserve_stock(delta, reservation.id)
            else:
                item.release_reserved_stock(-delta, reservation.id)
            reservation.modify_quantity(command.quantity, modified_by=command.modified_by)

        if command.expires_at is not None:
            reservation.extend_expiry(command.expires_at, modified_by=command.modified_by)

        if command.reason is not None:
            reservation.update_reason(command.reason, modified_by=command.modified_by)

        persist(reservation, item)
        return ReservationView.from_reservation(reservation)
