"""Reservation aggregate: a time-limited hold on an item's available stock.

State Machine:
    ACTIVE → FULFILLED            (all reserved stock used)
    ACTIVE → PARTIALLY_FULFILLED  (some used, the rest handed back)
    ACTIVE → CANCELLED            (explicit cancel)
    ACTIVE → EXPIRED              (expiry sweep)

Every state other than ACTIVE is terminal. The aggregate never touches the
InventoryItem; handlers reconcile ``reserved_stock`` on the item in the same
unit of work, using the quantities these methods return.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.fields import Boolean, DateTime, Decimal, Identifier, String

from ims.domain import ims
from ims.errors import InvalidInput, InvalidQuantity, ReservationNotActive
from ims.ledger.movement import MAX_REFERENCE_LENGTH
from ims.reservation.events import (
    ReservationCancelled,
    ReservationCreated,
    ReservationExpired,
    ReservationExpiring,
    ReservationFulfilled,
    ReservationModified,
)
from ims.shared.quantity import ZERO, to_quantity
from ims.shared.timeutils import ensure_utc, is_future

MAX_REASON_LENGTH = 500


class ReservationStatus(Enum):
    ACTIVE = "Active"
    FULFILLED = "Fulfilled"
    PARTIALLY_FULFILLED = "PartiallyFulfilled"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"


_VALID_TRANSITIONS = {
    ReservationStatus.ACTIVE: {
        ReservationStatus.FULFILLED,
        ReservationStatus.PARTIALLY_FULFILLED,
        ReservationStatus.CANCELLED,
        ReservationStatus.EXPIRED,
    },
    ReservationStatus.FULFILLED: set(),  # Terminal
    ReservationStatus.PARTIALLY_FULFILLED: set(),  # Terminal
    ReservationStatus.CANCELLED: set(),  # Terminal
    ReservationStatus.EXPIRED: set(),  # Terminal
}


def _validate_quantity(quantity):
    quantity = to_quantity(quantity)
    if quantity is None or quantity <= 0:
        raise InvalidQuantity("Reservation quantity must be greater than zero")
    return quantity


def _validate_expiry(expires_at):
    if expires_at is None or not is_future(expires_at):
        raise InvalidInput("Expiry must be in the future", field="expires_at")


def _validate_reason(reason):
    if reason and len(reason) > MAX_REASON_LENGTH:
        raise InvalidInput(f"Reason cannot exceed {MAX_REASON_LENGTH} characters", field="reason")


@ims.aggregate
class Reservation:
    """Stock held for a future sale of one variant at one warehouse."""

    inventory_item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True, max_length=50)
    quantity = Decimal()
    original_quantity = Decimal()
    fulfilled_quantity = Decimal(default=ZERO)
    expires_at = DateTime(required=True)
    status = String(choices=ReservationStatus, default=ReservationStatus.ACTIVE.value)
    reference_number = String(required=True, max_length=MAX_REFERENCE_LENGTH)
    reason = String(max_length=2000)
    created_by = String(max_length=100)
    created_at = DateTime()
    modified_by = String(max_length=100)
    updated_at = DateTime()
    used_by = String(max_length=100)
    used_at = DateTime()
    cancelled_by = String(max_length=100)
    cancelled_at = DateTime()
    expiry_warned_at = DateTime()
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    deleted_by = String(max_length=100)

    @classmethod
    def create(cls, item, quantity, expires_at, reference_number, reason=None, created_by=None):
        """Open an active reservation against ``item``.

        Reserving the stock on the item is the caller's job.
        """
        quantity = _validate_quantity(quantity)
        _validate_expiry(expires_at)
        _validate_reason(reason)
        reference_number = (reference_number or "").strip()
        if not reference_number:
            raise InvalidInput("Reference number is required", field="reference_number")
        if len(reference_number) > MAX_REFERENCE_LENGTH:
            raise InvalidInput(
                f"Reference number cannot exceed {MAX_REFERENCE_LENGTH} characters",
                field="reference_number",
            )

        now = datetime.now(UTC)
        reservation = cls(
            inventory_item_id=str(item.id),
            variant_id=str(item.variant_id),
            warehouse_id=str(item.warehouse_id),
            tenant_id=item.tenant_id,
            quantity=quantity,
            original_quantity=quantity,
            expires_at=ensure_utc(expires_at),
            reference_number=reference_number,
            reason=reason,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        reservation.raise_(
            ReservationCreated(
                reservation_id=str(reservation.id),
                tenant_id=reservation.tenant_id,
                inventory_item_id=str(item.id),
                variant_id=str(item.variant_id),
                warehouse_id=str(item.warehouse_id),
                quantity=quantity,
                reference_number=reference_number,
                expires_at=reservation.expires_at,
                created_by=created_by,
                created_at=now,
            )
        )
        return reservation

    # -------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------
    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE.value

    @property
    def remaining_quantity(self):
        return max((self.quantity or ZERO) - (self.fulfilled_quantity or ZERO), ZERO)

    def is_expired_at(self, as_of=None) -> bool:
        return ensure_utc(self.expires_at) <= ensure_utc(as_of or datetime.now(UTC))

    def expires_within(self, minutes, as_of=None) -> bool:
        as_of = ensure_utc(as_of or datetime.now(UTC))
        return as_of < ensure_utc(self.expires_at) <= as_of + timedelta(minutes=minutes)

    def assert_active(self) -> None:
        if not self.is_active:
            raise ReservationNotActive(f"Reservation {self.id} is {self.status}, not Active")

    def _transition(self, target: ReservationStatus) -> None:
        self.assert_active()
        current = ReservationStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise ReservationNotActive(f"Cannot transition from {current.value} to {target.value}")
        self.status = target.value

    def _modified(self, previous_quantity, modified_by):
        self.modified_by = modified_by
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ReservationModified(
                reservation_id=str(self.id),
                tenant_id=self.tenant_id,
                previous_quantity=previous_quantity,
                quantity=self.quantity,
                expires_at=self.expires_at,
                modified_by=modified_by,
                modified_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Changes while active
    # -------------------------------------------------------------------
    def modify_quantity(self, new_quantity, modified_by=None):
        """Set a new held quantity; returns the delta the item must absorb."""
        self.assert_active()
        new_quantity = _validate_quantity(new_quantity)
        previous = self.quantity
        self.quantity = new_quantity
        self._modified(previous, modified_by)
        return new_quantity - previous

    def extend_expiry(self, new_expiry, modified_by=None) -> None:
        self.assert_active()
        _validate_expiry(new_expiry)
        self.expires_at = ensure_utc(new_expiry)
        self.expiry_warned_at = None
        self._modified(self.quantity, modified_by)

    def update_reason(self, reason, modified_by=None) -> None:
        self.assert_active()
        _validate_reason(reason)
        self.reason = reason
        self._modified(self.quantity, modified_by)

    # -------------------------------------------------------------------
    # Terminal transitions
    # -------------------------------------------------------------------
    def cancel(self, cancelled_by, reason=None):
        """Cancel the hold; returns the quantity to release on the item."""
        if not cancelled_by:
            raise InvalidInput("Cancelled by is required", field="cancelled_by")
        self._transition(ReservationStatus.CANCELLED)
        now = datetime.now(UTC)
        self.cancelled_by = cancelled_by
        self.cancelled_at = now
        self.updated_at = now
        if reason:
            self.reason = f"{self.reason}; Cancelled: {reason}" if self.reason else f"Cancelled: {reason}"
        self.raise_(
            ReservationCancelled(
                reservation_id=str(self.id),
                tenant_id=self.tenant_id,
                inventory_item_id=str(self.inventory_item_id),
                released_quantity=self.quantity,
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=now,
            )
        )
        return self.quantity

    def fulfil(self, quantity, used_by):
        """Use ``quantity`` of the hold.

        Returns the full held quantity, which the caller releases before
        recording the sale of what was used.
        """
        if not used_by:
            raise InvalidInput("Used by is required", field="used_by")
        self.assert_active()
        quantity = to_quantity(quantity)
        if quantity is None or quantity <= 0:
            raise InvalidQuantity("Fulfilled quantity must be greater than zero")
        if quantity > self.quantity:
            raise InvalidQuantity(
                f"Cannot fulfil {quantity:g}; only {self.quantity:g} is reserved"
            )

        target = (
            ReservationStatus.FULFILLED if quantity == self.quantity else ReservationStatus.PARTIALLY_FULFILLED
        )
        self._transition(target)
        now = datetime.now(UTC)
        self.fulfilled_quantity = quantity
        self.used_by = used_by
        self.used_at = now
        self.updated_at = now
        self.raise_(
            ReservationFulfilled(
                reservation_id=str(self.id),
                tenant_id=self.tenant_id,
                inventory_item_id=str(self.inventory_item_id),
                status=target.value,
                used_quantity=quantity,
                released_quantity=self.quantity - quantity,
                used_by=used_by,
                used_at=now,
            )
        )
        return self.quantity

    def expire(self):
        """Mark the hold expired; returns the quantity to release on the item."""
        self._transition(ReservationStatus.EXPIRED)
        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            ReservationExpired(
                reservation_id=str(self.id),
                tenant_id=self.tenant_id,
                inventory_item_id=str(self.inventory_item_id),
                released_quantity=self.quantity,
                expired_at=now,
            )
        )
        return self.quantity

    def warn_expiring(self) -> bool:
        """Raise ReservationExpiring once per expiry date. Returns True if raised."""
        if not self.is_active or self.expiry_warned_at is not None:
            return False
        self.expiry_warned_at = datetime.now(UTC)
        self.raise_(
            ReservationExpiring(
                reservation_id=str(self.id),
                tenant_id=self.tenant_id,
                variant_id=str(self.variant_id),
                warehouse_id=str(self.warehouse_id),
                quantity=self.quantity,
                reference_number=self.reference_number,
                expires_at=self.expires_at,
                warned_at=self.expiry_warned_at,
            )
        )
        return True
