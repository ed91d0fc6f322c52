"""Reservation fulfilment: turning a hold into a sale.

Fulfilment is terminal even when only part of the hold is used: the whole
hold is released and a Sale movement is recorded for the used quantity under
the reservation's reference number.
"""

from protean import handle
from protean.fields import Decimal, Identifier, String
from protean.utils.globals import current_domain

from ims.domain import ims
from ims.dto import ReservationView
from ims.ledger.movement import StockMovement
from ims.reservation.common import load_reservation_and_item, persist
from ims.reservation.reservation import Reservation


@ims.command(part_of="Reservation")
class FulfillReservation:
    """Use reserved stock, fully or partially."""

    reservation_id = Identifier(required=True)
    quantity = Decimal()
    used_by = String(required=True, max_length=100)
    reason = String(max_length=255)


@ims.command_handler(part_of=Reservation)
class ReservationFulfillmentHandler:
    @handle(FulfillReservation)
    def fulfill_reservation(self, command):
        reservation, item = load_reservation_and_item(command.reservation_id)

        held = reservation.fulfil(command.quantity, used_by=command.used_by)
        item.release_reserved_stock(held, reservation.id)
        movement = item.record_sale(
            quantity=command.quantity,
            reason=command.reason or f"Reservation {reservation.reference_number} fulfilled",
            actor_id=command.used_by,
            reference_number=reservation.reference_number,
            metadata={"reservation_id": str(reservation.id)},
        )

        persist(reservation, item)
        current_domain.repository_for(StockMovement).add(movement)
        return ReservationView.from_reservation(reservation)
