"""InventoryItem aggregate: the stock ledger of one variant at one warehouse.

The item is the only thing allowed to change stock quantities. Each ledger
mutation updates ``total_stock`` and returns the StockMovement describing the
change; the calling handler persists both in one unit of work, so the balance
and the ledger never diverge.

Stock model:
    total_stock:     physical quantity recorded by the ledger
    reserved_stock:  held by active reservations
    available_stock: total_stock - reserved_stock

Reservations move only ``reserved_stock`` and produce no movement.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Decimal, Identifier, Integer, String

from ims import settings
from ims.domain import ims
from ims.errors import (
    BusinessRuleViolation,
    InsufficientStock,
    InvalidInput,
    InvalidQuantity,
    NegativeStockNotAllowed,
    OpeningBalanceExists,
)
from ims.inventory.events import (
    InventoryItemDeleted,
    InventoryItemRestored,
    InventorySettingsUpdated,
    LowStockDetected,
    OpeningBalanceSet,
    StockLevelChanged,
)
from ims.ledger.movement import MovementType, StockMovement
from ims.shared.quantity import ZERO, to_quantity
from ims.shared.timeutils import ensure_utc, is_future

logger = structlog.get_logger(__name__)

TRANSFER_TYPE = "warehouse_transfer"


def require_positive(quantity, what="Quantity"):
    quantity = to_quantity(quantity)
    if quantity is None or quantity <= 0:
        raise InvalidQuantity(f"{what} must be greater than zero")
    return quantity


@ims.aggregate
class InventoryItem:
    """Stock position and ledger owner for a (variant, warehouse) pair."""

    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True, max_length=50)
    total_stock = Decimal(default=ZERO)
    reserved_stock = Decimal(default=ZERO)
    allow_negative_stock = Boolean(default=False)
    low_stock_threshold = Decimal(default=10, min_value=0)
    expiry_date = DateTime()
    has_opening_balance = Boolean(default=False)
    movement_count = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()
    is_deleted = Boolean(default=False)
    deleted_at = DateTime()
    deleted_by = String(max_length=100)

    @invariant.post
    def reserved_stock_is_never_negative(self):
        if self.reserved_stock is not None and self.reserved_stock < 0:
            raise ValidationError({"reserved_stock": ["Reserved stock cannot be negative"]})

    @invariant.post
    def stock_stays_covered_unless_negative_allowed(self):
        if self.allow_negative_stock:
            return
        if (self.total_stock or 0) < 0:
            raise ValidationError({"total_stock": ["Total stock cannot be negative"]})
        if (self.reserved_stock or 0) > (self.total_stock or 0):
            raise ValidationError({"reserved_stock": ["Reserved stock cannot exceed total stock"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        variant_id,
        warehouse_id,
        tenant_id,
        allow_negative_stock=False,
        threshold=None,
        expiry_date=None,
    ):
        """Create an empty ledger for a variant at a warehouse."""
        now = datetime.now(UTC)
        return cls(
            variant_id=str(variant_id),
            warehouse_id=str(warehouse_id),
            tenant_id=tenant_id,
            allow_negative_stock=bool(allow_negative_stock),
            low_stock_threshold=settings.low_stock_threshold() if threshold is None else to_quantity(threshold),
            expiry_date=expiry_date,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    @property
    def available_stock(self):
        return (self.total_stock or ZERO) - (self.reserved_stock or ZERO)

    @property
    def is_out_of_stock(self) -> bool:
        return (self.total_stock or 0) <= 0

    @property
    def is_low_stock(self) -> bool:
        return self.available_stock <= (self.low_stock_threshold or 0)

    def is_expired(self, as_of=None) -> bool:
        if self.expiry_date is None:
            return False
        return ensure_utc(self.expiry_date) <= ensure_utc(as_of or datetime.now(UTC))

    def is_near_expiry(self, days=7, as_of=None) -> bool:
        if self.expiry_date is None:
            return False
        as_of = ensure_utc(as_of or datetime.now(UTC))
        return ensure_utc(self.expiry_date) <= as_of + timedelta(days=days)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _append(
        self,
        movement_type,
        quantity,
        reason,
        actor_id=None,
        reference_number=None,
        metadata=None,
        movement_id=None,
        paired_movement_id=None,
    ):
        """Apply a signed change and return the matching ledger movement.

        The movement is built first so that a rejected reason or reference
        leaves the balance untouched.
        """
        new_total = (self.total_stock or ZERO) + quantity
        sequence = (self.movement_count or 0) + 1
        movement = StockMovement.record(
            self,
            movement_type=movement_type,
            quantity=quantity,
            running_balance=new_total,
            sequence=sequence,
            reason=reason,
            actor_id=actor_id,
            reference_number=reference_number,
            metadata=metadata,
            movement_id=movement_id,
            paired_movement_id=paired_movement_id,
        )

        self.total_stock = new_total
        self.movement_count = sequence
        self.updated_at = movement.occurred_at
        self._stock_changed(movement_type.value, quantity, movement)

        logger.info(
            "Stock movement recorded",
            inventory_item_id=str(self.id),
            movement_type=movement_type.value,
            quantity=quantity,
            running_balance=new_total,
            reference_number=movement.reference_number,
        )
        return movement

    def _stock_changed(self, change_type, quantity, movement=None):
        self.raise_(
            StockLevelChanged(
                inventory_item_id=str(self.id),
                variant_id=str(self.variant_id),
                warehouse_id=str(self.warehouse_id),
                tenant_id=self.tenant_id,
                change_type=change_type,
                quantity=quantity,
                total_stock=self.total_stock,
                reserved_stock=self.reserved_stock,
                available_stock=self.available_stock,
                movement_id=str(movement.id) if movement else None,
                reference_number=movement.reference_number if movement else None,
                actor_id=movement.actor_id if movement else None,
                changed_at=datetime.now(UTC),
            )
        )

    def _check_low_stock(self):
        """Raise LowStockDetected if available is at or below the threshold."""
        if self.is_low_stock:
            self.raise_(
                LowStockDetected(
                    inventory_item_id=str(self.id),
                    variant_id=str(self.variant_id),
                    warehouse_id=str(self.warehouse_id),
                    tenant_id=self.tenant_id,
                    available_stock=self.available_stock,
                    threshold=self.low_stock_threshold,
                    out_of_stock=self.is_out_of_stock,
                    detected_at=datetime.now(UTC),
                )
            )

    def _assert_can_decrease(self, quantity, shortage_error=InsufficientStock):
        """Reject a decrease the item cannot cover unless negative stock is allowed."""
        if self.allow_negative_stock:
            return
        if (self.total_stock or 0) - quantity < 0:
            if shortage_error is InsufficientStock:
                raise InsufficientStock(
                    f"Insufficient stock: requested {quantity:g}, available {self.available_stock:g}"
                )
            raise NegativeStockNotAllowed(
                f"Change of -{quantity:g} would leave stock at {(self.total_stock or 0) - quantity:g}; "
                "negative stock is not allowed for this item"
            )
        if quantity > self.available_stock:
            raise InsufficientStock(
                f"Insufficient stock: requested {quantity:g}, available {self.available_stock:g} "
                f"({self.reserved_stock:g} reserved)"
            )

    # -------------------------------------------------------------------
    # Ledger mutations
    # -------------------------------------------------------------------
    def set_opening_balance(self, quantity, reason, actor_id=None, reference_number=None):
        """Start the ledger. Allowed exactly once per variant and warehouse."""
        if self.has_opening_balance:
            raise OpeningBalanceExists(
                f"Opening balance already set for variant {self.variant_id} at warehouse {self.warehouse_id}"
            )
        if self.movement_count:
            raise OpeningBalanceExists(
                "Ledger already has movements; record an adjustment instead of an opening balance"
            )
        quantity = to_quantity(quantity)
        if quantity is None or quantity < 0:
            raise InvalidQuantity("Opening balance cannot be negative")

        movement = self._append(
            MovementType.OPENING_BALANCE,
            quantity,
            reason,
            actor_id=actor_id,
            reference_number=reference_number,
        )
        self.has_opening_balance = True
        self.raise_(
            OpeningBalanceSet(
                inventory_item_id=str(self.id),
                variant_id=str(self.variant_id),
                warehouse_id=str(self.warehouse_id),
                tenant_id=self.tenant_id,
                quantity=quantity,
                movement_id=str(movement.id),
                actor_id=movement.actor_id,
                set_at=movement.occurred_at,
            )
        )
        return movement

    def record_purchase(self, quantity, reason, actor_id=None, reference_number=None, metadata=None):
        """Receive purchased stock."""
        quantity = require_positive(quantity, "Purchase quantity")
        return self._append(MovementType.PURCHASE, quantity, reason, actor_id, reference_number, metadata)

    def record_sale(self, quantity, reason, actor_id=None, reference_number=None, metadata=None):
        """Ship sold stock out of the warehouse."""
        quantity = require_positive(quantity, "Sale quantity")
        self._assert_can_decrease(quantity)
        movement = self._append(MovementType.SALE, -quantity, reason, actor_id, reference_number, metadata)
        self._check_low_stock()
        return movement

    def record_refund(self, quantity, reason, original_sale_reference, actor_id=None, metadata=None):
        """Take refunded stock back in.

        The refundable remainder of the original sale must already have been
        checked by the caller.
        """
        quantity = require_positive(quantity, "Refund quantity")
        if not (original_sale_reference or "").strip():
            raise InvalidInput("Original sale reference is required", field="original_sale_reference")
        return self._append(MovementType.REFUND, quantity, reason, actor_id, original_sale_reference, metadata)

    def record_adjustment(self, quantity, reason, actor_id=None, reference_number=None, metadata=None):
        """Apply a signed correction (stock count, found or lost goods)."""
        quantity = to_quantity(quantity)
        if quantity is None or quantity == 0:
            raise InvalidQuantity("Adjustment quantity cannot be zero")
        if quantity < 0:
            self._assert_can_decrease(-quantity, shortage_error=NegativeStockNotAllowed)
        movement = self._append(MovementType.ADJUSTMENT, quantity, reason, actor_id, reference_number, metadata)
        if quantity < 0:
            self._check_low_stock()
        return movement

    def record_write_off(self, quantity, reason, actor_id=None, reference_number=None, metadata=None):
        """Remove damaged, expired or lost stock."""
        quantity = require_positive(quantity, "Write-off quantity")
        self._assert_can_decrease(quantity, shortage_error=NegativeStockNotAllowed)
        movement = self._append(MovementType.WRITE_OFF, -quantity, reason, actor_id, reference_number, metadata)
        self._check_low_stock()
        return movement

    def record_transfer_out(
        self,
        quantity,
        destination_warehouse_id,
        reason,
        movement_id,
        paired_movement_id,
        actor_id=None,
        reference_number=None,
    ):
        """Credit side of a transfer."""
        quantity = require_positive(quantity, "Transfer quantity")
        self._assert_can_decrease(quantity)
        movement = self._append(
            MovementType.TRANSFER,
            -quantity,
            reason,
            actor_id,
            reference_number,
            self._transfer_metadata(self.warehouse_id, destination_warehouse_id),
            movement_id=movement_id,
            paired_movement_id=paired_movement_id,
        )
        self._check_low_stock()
        return movement

    def record_transfer_in(
        self,
        quantity,
        source_warehouse_id,
        reason,
        movement_id,
        paired_movement_id,
        actor_id=None,
        reference_number=None,
    ):
        """Debit side of a transfer."""
        quantity = require_positive(quantity, "Transfer quantity")
        return self._append(
            MovementType.TRANSFER,
            quantity,
            reason,
            actor_id,
            reference_number,
            self._transfer_metadata(source_warehouse_id, self.warehouse_id),
            movement_id=movement_id,
            paired_movement_id=paired_movement_id,
        )

    @staticmethod
    def _transfer_metadata(source_warehouse_id, destination_warehouse_id):
        return {
            "source_warehouse_id": str(source_warehouse_id),
            "destination_warehouse_id": str(destination_warehouse_id),
            "transfer_type": TRANSFER_TYPE,
        }

    # -------------------------------------------------------------------
    # Reserved stock
    # -------------------------------------------------------------------
    def reserve_stock(self, quantity, reservation_id):
        """Hold available stock for a reservation."""
        quantity = require_positive(quantity, "Reservation quantity")
        if not self.allow_negative_stock and self.available_stock < quantity:
            raise InsufficientStock(
                f"Insufficient stock: requested {quantity:g}, available {self.available_stock:g}"
            )
        self.reserved_stock = (self.reserved_stock or ZERO) + quantity
        self.updated_at = datetime.now(UTC)
        self._stock_changed("Reserved", quantity)
        self._check_low_stock()
        logger.info(
            "Stock reserved",
            inventory_item_id=str(self.id),
            reservation_id=str(reservation_id),
            quantity=quantity,
            reserved_stock=self.reserved_stock,
        )

    def release_reserved_stock(self, quantity, reservation_id):
        """Give held stock back. Never takes reserved stock below zero."""
        quantity = require_positive(quantity, "Release quantity")
        reserved = self.reserved_stock or ZERO
        if quantity > reserved:
            logger.warning(
                "Release exceeds reserved stock; flooring at zero",
                inventory_item_id=str(self.id),
                reservation_id=str(reservation_id),
                requested=quantity,
                reserved_stock=reserved,
                shortfall=quantity - reserved,
            )
        released = min(quantity, reserved)
        self.reserved_stock = reserved - released
        self.updated_at = datetime.now(UTC)
        self._stock_changed("Released", released)
        return released

    # -------------------------------------------------------------------
    # Settings and lifecycle
    # -------------------------------------------------------------------
    def update_negative_stock_policy(self, allow):
        if not allow and (self.total_stock < 0 or self.reserved_stock > self.total_stock):
            raise BusinessRuleViolation(
                "Cannot disallow negative stock while stock is negative or over-reserved"
            )
        self.allow_negative_stock = bool(allow)
        self._settings_updated()

    def update_expiry_date(self, expiry_date):
        if expiry_date is not None and not is_future(expiry_date):
            raise InvalidInput("Expiry date must be in the future", field="expiry_date")
        self.expiry_date = expiry_date
        self._settings_updated()

    def update_low_stock_threshold(self, threshold):
        threshold = to_quantity(threshold)
        if threshold is None or threshold < 0:
            raise InvalidInput("Low stock threshold cannot be negative", field="low_stock_threshold")
        self.low_stock_threshold = threshold
        self._settings_updated()

    def _settings_updated(self):
        self.updated_at = datetime.now(UTC)
        self.raise_(
            InventorySettingsUpdated(
                inventory_item_id=str(self.id),
                tenant_id=self.tenant_id,
                allow_negative_stock=self.allow_negative_stock,
                low_stock_threshold=self.low_stock_threshold,
                expiry_date=self.expiry_date,
                updated_at=self.updated_at,
            )
        )

    def soft_delete(self, deleted_by):
        if not deleted_by:
            raise InvalidInput("Deleted by is required", field="deleted_by")
        if self.is_deleted:
            raise BusinessRuleViolation("Inventory item is already deleted")
        if (self.reserved_stock or 0) > 0:
            raise BusinessRuleViolation("Inventory item has reserved stock; cancel its reservations first")
        now = datetime.now(UTC)
        self.is_deleted = True
        self.deleted_at = now
        self.deleted_by = deleted_by
        self.updated_at = now
        self.raise_(
            InventoryItemDeleted(
                inventory_item_id=str(self.id), tenant_id=self.tenant_id, deleted_by=deleted_by, deleted_at=now
            )
        )

    def restore(self):
        if not self.is_deleted:
            raise BusinessRuleViolation("Inventory item is not deleted")
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        self.updated_at = datetime.now(UTC)
        self.raise_(
            InventoryItemRestored(inventory_item_id=str(self.id), tenant_id=self.tenant_id, restored_at=self.updated_at)
        )
