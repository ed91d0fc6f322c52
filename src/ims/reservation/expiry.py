"""Reservation expiry: per-reservation commands and the periodic sweep.

``sweep_reservations`` is meant to be triggered by an external scheduler
(cron, a Kubernetes CronJob) through the maintenance endpoint or
``manage.py expire-reservations``. Each reservation is expired in its own unit
of work, so one failure does not hold back the rest.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain

from ims import settings
from ims.domain import ims
from ims.dto import ExpirySummary, ReservationView
from ims.errors import BusinessRuleViolation
from ims.mediator import send
from ims.reservation.common import load_reservation_and_item, persist
from ims.reservation.reservation import Reservation

logger = structlog.get_logger(__name__)


@ims.command(part_of="Reservation")
class ExpireReservation:
    """Expire one overdue reservation and release its stock."""

    reservation_id = Identifier(required=True)
    as_of = DateTime()  # Optional: defaults to now


@ims.command(part_of="Reservation")
class WarnExpiringReservation:
    """Announce that a reservation is about to expire."""

    reservation_id = Identifier(required=True)


@ims.command_handler(part_of=Reservation)
class ReservationExpiryHandler:
    @handle(ExpireReservation)
    def expire_reservation(self, command):
        reservation, item = load_reservation_and_item(command.reservation_id)
        reservation.assert_active()
        if not reservation.is_expired_at(command.as_of):
            raise BusinessRuleViolation(f"Reservation {reservation.id} has not reached its expiry yet")
        released = reservation.expire()
        item.release_reserved_stock(released, reservation.id)
        persist(reservation, item)
        return ReservationView.from_reservation(reservation)

    @handle(WarnExpiringReservation)
    def warn_expiring(self, command):
        repo = current_domain.repository_for(Reservation)
        reservation = repo.load(command.reservation_id)
        warned = reservation.warn_expiring()
        if warned:
            repo.add(reservation)
        return warned


def sweep_reservations(as_of=None, warning_minutes=None) -> ExpirySummary:
    """Expire every overdue active reservation and flag those expiring soon."""
    as_of = as_of or datetime.now(UTC)
    warning_minutes = settings.reservation_warning_minutes() if warning_minutes is None else warning_minutes
    repo = current_domain.repository_for(Reservation)

    overdue = repo.get_active_expired(as_of)
    logger.info("Checking for overdue reservations", as_of=as_of.isoformat(), overdue=len(overdue))

    expired = failed = 0
    for reservation in overdue:
        result = send(ExpireReservation, reservation_id=str(reservation.id), as_of=as_of)
        if result.is_success:
            expired += 1
            logger.info(
                "Expired reservation",
                reservation_id=str(reservation.id),
                reference_number=reservation.reference_number,
                released=reservation.quantity,
            )
        else:
            failed += 1
            logger.warning(
                "Failed to expire reservation",
                reservation_id=str(reservation.id),
                error_code=result.error_code,
                error=result.error_message,
            )

    expiring = 0
    for reservation in repo.get_expiring_between(warning_minutes, as_of):
        result = send(WarnExpiringReservation, reservation_id=str(reservation.id))
        if result.is_success and result.value:
            expiring += 1

    logger.info("Reservation sweep complete", expired=expired, failed=failed, expiring=expiring)
    return ExpirySummary(expired=expired, failed=failed, expiring=expiring)
