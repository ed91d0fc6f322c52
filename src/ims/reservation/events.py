"""Domain events for the Reservation aggregate."""

from protean.fields import DateTime, Decimal, Identifier, String

from ims.domain import ims


@ims.event(part_of="Reservation")
class ReservationCreated:
    __version__ = 1

    reservation_id = Identifier(required=True)
    tenant_id = String(required=True)
    inventory_item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    quantity = Decimal()
    reference_number = String(required=True)
    expires_at = DateTime(required=True)
    created_by = String()
    created_at = DateTime(required=True)


@ims.event(part_of="Reservation")
class ReservationModified:
    """Quantity, expiry or reason of an active reservation changed."""

    __version__ = 1

    reservation_id = Identifier(required=True)
    tenant_id = String(required=True)
    previous_quantity = Decimal()
    quantity = Decimal()
    expires_at = DateTime(required=True)
    modified_by = String()
    modified_at = DateTime(required=True)


@ims.event(part_of="Reservation")
class ReservationCancelled:
    __version__ = 1

    reservation_id = Identifier(required=True)
    tenant_id = String(required=True)
    inventory_item_id = Identifier(required=True)
    released_quantity = Decimal()
    reason = String()
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)


@ims.event(part_of="Reservation")
class ReservationFulfilled:
    """Reserved stock was used, fully or in part."""

    __version__ = 1

    reservation_id = Identifier(required=True)
    tenant_id = String(required=True)
    inventory_item_id = Identifier(required=True)
    status = String(required=True)
    used_quantity = Decimal()
    released_quantity = Decimal()
    used_by = String(required=True)
    used_at = DateTime(required=True)


@ims.event(part_of="Reservation")
class ReservationExpired:
    __version__ = 1

    reservation_id = Identifier(required=True)
    tenant_id = String(required=True)
    inventory_item_id = Identifier(required=True)
    released_quantity = Decimal()
    expired_at = DateTime(required=True)


@ims.event(part_of="Reservation")
class ReservationExpiring:
    """An active reservation will expire soon."""

    __version__ = 1

    reservation_id = Identifier(required=True)
    tenant_id = String(required=True)
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    quantity = Decimal()
    reference_number = String(required=True)
    expires_at = DateTime(required=True)
    warned_at = DateTime(required=True)
