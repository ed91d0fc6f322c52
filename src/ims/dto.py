"""Read models handed out by commands and queries.

These are plain pydantic models built from aggregates; nothing in the domain
depends on them. The HTTP layer uses them directly as response models.
"""

import math
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, computed_field

from ims.shared.quantity import Quantity

T = TypeVar("T")


class StockPosition(BaseModel):
    inventory_item_id: str
    variant_id: str
    warehouse_id: str
    tenant_id: str
    total_stock: Quantity
    reserved_stock: Quantity
    available_stock: Quantity
    allow_negative_stock: bool
    low_stock_threshold: Quantity
    is_low_stock: bool
    is_out_of_stock: bool
    has_opening_balance: bool
    expiry_date: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_item(cls, item) -> "StockPosition":
        return cls(
            inventory_item_id=str(item.id),
            variant_id=str(item.variant_id),
            warehouse_id=str(item.warehouse_id),
            tenant_id=item.tenant_id,
            total_stock=item.total_stock,
            reserved_stock=item.reserved_stock,
            available_stock=item.available_stock,
            allow_negative_stock=item.allow_negative_stock,
            low_stock_threshold=item.low_stock_threshold,
            is_low_stock=item.is_low_stock,
            is_out_of_stock=item.is_out_of_stock,
            has_opening_balance=item.has_opening_balance,
            expiry_date=item.expiry_date,
            updated_at=item.updated_at,
        )


class MovementRecord(BaseModel):
    movement_id: str
    inventory_item_id: str
    variant_id: str
    warehouse_id: str
    sequence: int
    movement_type: str
    quantity: Quantity
    running_balance: Quantity
    entry_type: str
    reason: str
    actor_id: str | None = None
    reference_number: str | None = None
    metadata: dict[str, str] = {}
    paired_movement_id: str | None = None
    occurred_at: datetime

    @classmethod
    def from_movement(cls, movement) -> "MovementRecord":
        return cls(
            movement_id=str(movement.id),
            inventory_item_id=str(movement.inventory_item_id),
            variant_id=str(movement.variant_id),
            warehouse_id=str(movement.warehouse_id),
            sequence=movement.sequence,
            movement_type=movement.movement_type,
            quantity=movement.quantity,
            running_balance=movement.running_balance,
            entry_type=movement.entry_type,
            reason=movement.reason,
            actor_id=movement.actor_id,
            reference_number=movement.reference_number,
            metadata=movement.metadata_dict,
            paired_movement_id=str(movement.paired_movement_id) if movement.paired_movement_id else None,
            occurred_at=movement.occurred_at,
        )


class StockMutation(BaseModel):
    """Post-mutation state of every item a command touched."""

    positions: list[StockPosition]
    movements: list[MovementRecord]

    @classmethod
    def of(cls, items, movements) -> "StockMutation":
        return cls(
            positions=[StockPosition.from_item(i) for i in items],
            movements=[MovementRecord.from_movement(m) for m in movements],
        )


class ReservationView(BaseModel):
    reservation_id: str
    inventory_item_id: str
    variant_id: str
    warehouse_id: str
    tenant_id: str
    status: str
    quantity: Quantity
    original_quantity: Quantity
    fulfilled_quantity: Quantity
    remaining_quantity: Quantity
    reference_number: str
    reason: str | None = None
    expires_at: datetime
    created_by: str | None = None
    created_at: datetime | None = None
    modified_by: str | None = None
    updated_at: datetime | None = None
    used_by: str | None = None
    used_at: datetime | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def from_reservation(cls, reservation) -> "ReservationView":
        return cls(
            reservation_id=str(reservation.id),
            inventory_item_id=str(reservation.inventory_item_id),
            variant_id=str(reservation.variant_id),
            warehouse_id=str(reservation.warehouse_id),
            tenant_id=reservation.tenant_id,
            status=reservation.status,
            quantity=reservation.quantity,
            original_quantity=reservation.original_quantity,
            fulfilled_quantity=reservation.fulfilled_quantity or 0,
            remaining_quantity=reservation.remaining_quantity,
            reference_number=reservation.reference_number,
            reason=reservation.reason,
            expires_at=reservation.expires_at,
            created_by=reservation.created_by,
            created_at=reservation.created_at,
            modified_by=reservation.modified_by,
            updated_at=reservation.updated_at,
            used_by=reservation.used_by,
            used_at=reservation.used_at,
            cancelled_by=reservation.cancelled_by,
            cancelled_at=reservation.cancelled_at,
        )


class RefundValidation(BaseModel):
    original_sale_reference: str
    requested_quantity: Quantity
    original_sale_quantity: Quantity
    total_refunded: Quantity
    remaining_refundable: Quantity
    original_sale_date: datetime | None = None
    refund_history: list[MovementRecord] = []
    can_refund: bool
    message: str


class SaleLine(BaseModel):
    """One item's part of a sale reference."""

    inventory_item_id: str
    variant_id: str
    warehouse_id: str
    quantity: Quantity
    total_refunded: Quantity
    remaining_refundable: Quantity


class SaleInfo(BaseModel):
    """A sale reference and what is left to refund.

    ``variant_id`` and ``warehouse_id`` are those of the earliest sale; the
    quantities cover every line. ``lines`` breaks a reference that was used
    by more than one item down per item.
    """

    sale_reference: str
    variant_id: str
    warehouse_id: str
    quantity: Quantity
    sale_date: datetime
    total_refunded: Quantity
    remaining_refundable: Quantity
    lines: list[SaleLine] = []


class WarehouseView(BaseModel):
    warehouse_id: str
    name: str
    code: str
    description: str | None = None
    address: dict | None = None
    capacity: int
    is_active: bool
    tenant_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_warehouse(cls, warehouse) -> "WarehouseView":
        return cls(
            warehouse_id=str(warehouse.id),
            name=warehouse.name,
            code=warehouse.code,
            description=warehouse.description,
            address=warehouse.address.to_dict() if warehouse.address else None,
            capacity=warehouse.capacity or 0,
            is_active=warehouse.is_active,
            tenant_id=warehouse.tenant_id,
            created_at=warehouse.created_at,
            updated_at=warehouse.updated_at,
        )


class VariantView(BaseModel):
    variant_id: str
    product_id: str
    sku: str
    name: str
    base_unit: str
    attributes: dict = {}
    is_deleted: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    @classmethod
    def from_variant(cls, product, variant) -> "VariantView":
        return cls(
            variant_id=str(variant.id),
            product_id=str(product.id),
            sku=variant.sku,
            name=variant.name,
            base_unit=variant.base_unit,
            attributes=variant.attributes_dict,
            is_deleted=variant.is_deleted,
            created_at=variant.created_at,
            updated_at=variant.updated_at,
            deleted_at=variant.deleted_at,
            deleted_by=variant.deleted_by,
        )


class ProductView(BaseModel):
    """A product with its live variants."""

    product_id: str
    tenant_id: str
    name: str
    description: str
    category_id: str | None = None
    variants: list[VariantView] = []
    variant_count: int
    is_deleted: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    @classmethod
    def from_product(cls, product) -> "ProductView":
        variants = product.variants if product.is_deleted else product.active_variants
        return cls(
            product_id=str(product.id),
            tenant_id=product.tenant_id,
            name=product.name,
            description=product.description,
            category_id=str(product.category_id) if product.category_id else None,
            variants=[VariantView.from_variant(product, v) for v in variants],
            variant_count=len(variants),
            is_deleted=product.is_deleted,
            created_at=product.created_at,
            updated_at=product.updated_at,
            deleted_at=product.deleted_at,
            deleted_by=product.deleted_by,
        )


class AuditEntry(BaseModel):
    audit_id: str
    action: str
    event_type: str
    entity_type: str
    entity_id: str
    tenant_id: str
    actor_id: str | None = None
    variant_id: str | None = None
    warehouse_id: str | None = None
    description: str
    details: dict = {}
    occurred_at: datetime

    @classmethod
    def from_log(cls, log) -> "AuditEntry":
        return cls(
            audit_id=str(log.id),
            action=log.action,
            event_type=log.event_type,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            tenant_id=log.tenant_id,
            actor_id=log.actor_id,
            variant_id=log.variant_id,
            warehouse_id=log.warehouse_id,
            description=log.description,
            details=log.details_dict,
            occurred_at=log.occurred_at,
        )


class ExpirySummary(BaseModel):
    expired: int
    failed: int
    expiring: int


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages
