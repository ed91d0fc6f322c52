"""Reservation cancellation: command and handler."""

from protean import handle
from protean.fields import Identifier, String

from ims.domain import ims
from ims.dto import ReservationView
from ims.reservation.common import load_reservation_and_item, persist
from ims.reservation.reservation import Reservation


@ims.command(part_of="Reservation")
class CancelReservation:
    """Cancel an active reservation and hand its stock back."""

    reservation_id = Identifier(required=True)
    cancelled_by = String(required=True, max_length=100)
    reason = String(max_length=500)


@ims.command_handler(part_of=Reservation)
class ReservationCancellationHandler:
    @handle(CancelReservation)
    def cancel_reservation(self, command):
        reservation, item = load_reservation_and_item(command.reservation_id)
        # Raises for anything but Active, so stock is never released twice
        released = reservation.cancel(command.cancelled_by, reason=command.reason)
        item.release_reserved_stock(released, reservation.id)
        persist(reservation, item)
        return ReservationView.from_reservation(reservation)
