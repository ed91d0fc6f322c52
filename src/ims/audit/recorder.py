"""Audit recorder: one AuditLog entry per state-changing domain event.

Each handler listens to one aggregate's stream. Alerts (low stock, upcoming
expiry) are notifications rather than changes and are not recorded.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from ims.audit.audit_log import AuditAction, AuditLog
from ims.catalogue.events import (
    ProductCreated,
    ProductDeleted,
    ProductUpdated,
    VariantAdded,
    VariantDeleted,
    VariantUpdated,
)
from ims.domain import ims
from ims.inventory.events import (
    InventoryItemDeleted,
    InventoryItemRestored,
    InventorySettingsUpdated,
    OpeningBalanceSet,
    StockLevelChanged,
)
from ims.ledger.movement import MovementType
from ims.reservation.events import (
    ReservationCancelled,
    ReservationCreated,
    ReservationExpired,
    ReservationFulfilled,
    ReservationModified,
)
from ims.warehouse.events import (
    WarehouseCreated,
    WarehouseDeactivated,
    WarehouseDeleted,
    WarehouseUpdated,
)

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "system"
_HOLD_CHANGES = ("Reserved", "Released")


def _record(action: AuditAction, event, entity_type: str, entity_id, description: str, **refs) -> None:
    entry = AuditLog.record(action, event, entity_type, entity_id, description, **refs)
    current_domain.repository_for(AuditLog).add(entry)
    logger.debug(
        "Audit entry recorded",
        action=entry.action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        event_type=entry.event_type,
    )


@ims.event_handler(part_of=AuditLog, stream_category="ims::inventory_item")
class InventoryAuditHandler:
    @handle(OpeningBalanceSet)
    def opening_balance_set(self, event: OpeningBalanceSet) -> None:
        _record(
            AuditAction.CREATE,
            event,
            "InventoryItem",
            event.inventory_item_id,
            f"Opening balance of {event.quantity} units set",
            actor_id=event.actor_id,
            variant_id=event.variant_id,
            warehouse_id=event.warehouse_id,
        )

    @handle(StockLevelChanged)
    def stock_level_changed(self, event: StockLevelChanged) -> None:
        # Covered by OpeningBalanceSet
        if event.change_type == MovementType.OPENING_BALANCE.value:
            return
        action = AuditAction.STOCK_HOLD if event.change_type in _HOLD_CHANGES else AuditAction.STOCK_MOVEMENT
        _record(
            action,
            event,
            "InventoryItem",
            event.inventory_item_id,
            f"{event.change_type} of {event.quantity} units, available {event.available_stock}",
            actor_id=event.actor_id,
            variant_id=event.variant_id,
            warehouse_id=event.warehouse_id,
        )

    @handle(InventorySettingsUpdated)
    def settings_updated(self, event: InventorySettingsUpdated) -> None:
        _record(
            AuditAction.CONFIGURATION_CHANGE,
            event,
            "InventoryItem",
            event.inventory_item_id,
            "Inventory settings updated",
        )

    @handle(InventoryItemDeleted)
    def item_deleted(self, event: InventoryItemDeleted) -> None:
        _record(
            AuditAction.DELETE,
            event,
            "InventoryItem",
            event.inventory_item_id,
            "Inventory item deleted",
            actor_id=event.deleted_by,
        )

    @handle(InventoryItemRestored)
    def item_restored(self, event: InventoryItemRestored) -> None:
        _record(AuditAction.RESTORE, event, "InventoryItem", event.inventory_item_id, "Inventory item restored")


@ims.event_handler(part_of=AuditLog, stream_category="ims::reservation")
class ReservationAuditHandler:
    @handle(ReservationCreated)
    def reservation_created(self, event: ReservationCreated) -> None:
        _record(
            AuditAction.RESERVATION_CREATE,
            event,
            "Reservation",
            event.reservation_id,
            f"Reserved {event.quantity} units for {event.reference_number}",
            actor_id=event.created_by,
            variant_id=event.variant_id,
            warehouse_id=event.warehouse_id,
        )

    @handle(ReservationModified)
    def reservation_modified(self, event: ReservationModified) -> None:
        _record(
            AuditAction.RESERVATION_MODIFY,
            event,
            "Reservation",
            event.reservation_id,
            f"Reservation changed from {event.previous_quantity} to {event.quantity} units",
            actor_id=event.modified_by,
        )

    @handle(ReservationCancelled)
    def reservation_cancelled(self, event: ReservationCancelled) -> None:
        _record(
            AuditAction.RESERVATION_CANCEL,
            event,
            "Reservation",
            event.reservation_id,
            f"Reservation cancelled, {event.released_quantity} units released",
            actor_id=event.cancelled_by,
        )

    @handle(ReservationFulfilled)
    def reservation_fulfilled(self, event: ReservationFulfilled) -> None:
        _record(
            AuditAction.RESERVATION_FULFIL,
            event,
            "Reservation",
            event.reservation_id,
            f"Reservation {event.status.lower()}, {event.used_quantity} units used",
            actor_id=event.used_by,
        )

    @handle(ReservationExpired)
    def reservation_expired(self, event: ReservationExpired) -> None:
        _record(
            AuditAction.RESERVATION_EXPIRE,
            event,
            "Reservation",
            event.reservation_id,
            f"Reservation expired, {event.released_quantity} units released",
            actor_id=SYSTEM_ACTOR,
        )


@ims.event_handler(part_of=AuditLog, stream_category="ims::warehouse")
class WarehouseAuditHandler:
    @handle(WarehouseCreated)
    def warehouse_created(self, event: WarehouseCreated) -> None:
        _record(
            AuditAction.CREATE,
            event,
            "Warehouse",
            event.warehouse_id,
            f"Warehouse {event.code} created",
            warehouse_id=event.warehouse_id,
        )

    @handle(WarehouseUpdated)
    def warehouse_updated(self, event: WarehouseUpdated) -> None:
        _record(
            AuditAction.UPDATE,
            event,
            "Warehouse",
            event.warehouse_id,
            "Warehouse updated",
            warehouse_id=event.warehouse_id,
        )

    @handle(WarehouseDeactivated)
    def warehouse_deactivated(self, event: WarehouseDeactivated) -> None:
        _record(
            AuditAction.UPDATE,
            event,
            "Warehouse",
            event.warehouse_id,
            "Warehouse deactivated",
            warehouse_id=event.warehouse_id,
        )

    @handle(WarehouseDeleted)
    def warehouse_deleted(self, event: WarehouseDeleted) -> None:
        _record(
            AuditAction.DELETE,
            event,
            "Warehouse",
            event.warehouse_id,
            "Warehouse deleted",
            actor_id=event.deleted_by,
            warehouse_id=event.warehouse_id,
        )


@ims.event_handler(part_of=AuditLog, stream_category="ims::product")
class CatalogueAuditHandler:
    @handle(ProductCreated)
    def product_created(self, event: ProductCreated) -> None:
        _record(AuditAction.CREATE, event, "Product", event.product_id, f"Product {event.name} created")

    @handle(ProductUpdated)
    def product_updated(self, event: ProductUpdated) -> None:
        _record(AuditAction.UPDATE, event, "Product", event.product_id, "Product details updated")

    @handle(ProductDeleted)
    def product_deleted(self, event: ProductDeleted) -> None:
        _record(
            AuditAction.DELETE, event, "Product", event.product_id, "Product deleted", actor_id=event.deleted_by
        )

    @handle(VariantAdded)
    def variant_added(self, event: VariantAdded) -> None:
        _record(
            AuditAction.CREATE,
            event,
            "Variant",
            event.variant_id,
            f"Variant {event.sku} added",
            variant_id=event.variant_id,
        )

    @handle(VariantUpdated)
    def variant_updated(self, event: VariantUpdated) -> None:
        _record(
            AuditAction.UPDATE, event, "Variant", event.variant_id, "Variant updated", variant_id=event.variant_id
        )

    @handle(VariantDeleted)
    def variant_deleted(self, event: VariantDeleted) -> None:
        _record(
            AuditAction.DELETE,
            event,
            "Variant",
            event.variant_id,
            "Variant deleted",
            actor_id=event.deleted_by,
            variant_id=event.variant_id,
        )
