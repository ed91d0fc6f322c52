"""Reservation read side."""

from protean.utils.globals import current_domain

from ims import settings
from ims.dto import Page, ReservationView
from ims.errors import InvalidInput
from ims.ledger.queries import MAX_PAGE_SIZE
from ims.reservation.reservation import Reservation, ReservationStatus


def get_reservation(reservation_id) -> ReservationView:
    reservation = current_domain.repository_for(Reservation).load(reservation_id)
    return ReservationView.from_reservation(reservation)


def get_reservations(
    variant_id=None,
    warehouse_id=None,
    status=None,
    reference_number=None,
    page=1,
    page_size=20,
    tenant_id=None,
) -> Page[ReservationView]:
    if page < 1:
        raise InvalidInput("Page must be at least 1", field="page")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidInput(f"Page size must be between 1 and {MAX_PAGE_SIZE}", field="page_size")
    if status is not None and status not in {s.value for s in ReservationStatus}:
        raise InvalidInput(f"Unknown reservation status {status}", field="status")

    reservations, total = current_domain.repository_for(Reservation).search(
        tenant_id or settings.default_tenant(),
        variant_id=variant_id,
        warehouse_id=warehouse_id,
        status=status,
        reference_number=reference_number,
        page=page,
        page_size=page_size,
    )
    return Page[ReservationView](
        items=[ReservationView.from_reservation(r) for r in reservations],
        total=total,
        page=page,
        page_size=page_size,
    )
