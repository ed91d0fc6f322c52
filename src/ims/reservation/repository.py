"""Repository for the Reservation aggregate."""

from datetime import UTC, datetime, timedelta

from protean.exceptions import ObjectNotFoundError

from ims.domain import ims
from ims.errors import ReservationNotFound
from ims.reservation.reservation import Reservation, ReservationStatus
from ims.shared.paging import fetch_all, page_bounds
from ims.shared.timeutils import ensure_utc


@ims.repository(part_of=Reservation)
class ReservationRepository:
    def get_by_id(self, reservation_id) -> Reservation | None:
        try:
            reservation = self.get(str(reservation_id))
        except ObjectNotFoundError:
            return None
        return None if reservation.is_deleted else reservation

    def load(self, reservation_id) -> Reservation:
        reservation = self.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFound(f"Reservation {reservation_id} not found")
        return reservation

    def _active(self) -> list[Reservation]:
        return fetch_all(self._dao, status=ReservationStatus.ACTIVE.value, is_deleted=False)

    def get_active_expired(self, as_of=None) -> list[Reservation]:
        """Active reservations whose expiry has passed, oldest expiry first."""
        as_of = ensure_utc(as_of or datetime.now(UTC))
        expired = [r for r in self._active() if ensure_utc(r.expires_at) <= as_of]
        return sorted(expired, key=lambda r: ensure_utc(r.expires_at))

    def get_expiring_between(self, minutes, as_of=None) -> list[Reservation]:
        """Active reservations expiring within the next ``minutes``."""
        as_of = ensure_utc(as_of or datetime.now(UTC))
        horizon = as_of + timedelta(minutes=minutes)
        return [r for r in self._active() if as_of < ensure_utc(r.expires_at) <= horizon]

    def search(
        self,
        tenant_id,
        variant_id=None,
        warehouse_id=None,
        status=None,
        reference_number=None,
        page=1,
        page_size=20,
    ) -> tuple[list[Reservation], int]:
        filters = {"tenant_id": tenant_id, "is_deleted": False}
        if variant_id:
            filters["variant_id"] = str(variant_id)
        if warehouse_id:
            filters["warehouse_id"] = str(warehouse_id)
        if status:
            filters["status"] = status
        if reference_number:
            filters["reference_number"] = reference_number

        offset, limit = page_bounds(page, page_size)
        result = self._dao.query.filter(**filters).order_by("-created_at").offset(offset).limit(limit).all()
        return result.items, result.total
