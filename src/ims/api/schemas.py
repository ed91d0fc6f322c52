"""Pydantic request/response schemas for the IMS HTTP API.

These are external contracts, kept separate from the Protean commands they
are translated into.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


class ErrorDetail(BaseModel):
    code: str
    message: str


# ---------------------------------------------------------------------------
# Ledger Request Schemas
# ---------------------------------------------------------------------------
class _LedgerRequest(BaseModel):
    variant_id: str
    warehouse_id: str
    tenant_id: str | None = None
    quantity: Decimal
    reason: str
    actor_id: str | None = None


class OpeningBalanceRequest(_LedgerRequest):
    reference_number: str | None = None
    allow_negative_stock: bool = False
    low_stock_threshold: Decimal | None = Field(default=None, ge=0)
    expiry_date: datetime | None = None


class MovementRequest(_LedgerRequest):
    """Purchase, sale, adjustment and write-off bodies."""

    reference_number: str | None = None
    metadata: dict[str, str] | None = None


class RefundRequest(_LedgerRequest):
    original_sale_reference: str
    metadata: dict[str, str] | None = None


class TransferRequest(BaseModel):
    variant_id: str
    source_warehouse_id: str
    destination_warehouse_id: str
    tenant_id: str | None = None
    quantity: Decimal
    reason: str
    actor_id: str | None = None
    reference_number: str | None = None


class InventorySettingsRequest(BaseModel):
    tenant_id: str | None = None
    allow_negative_stock: bool | None = None
    low_stock_threshold: Decimal | None = None
    expiry_date: datetime | None = None
    clear_expiry_date: bool = False


class BulkLevelsRequest(BaseModel):
    variant_ids: list[str] = Field(min_length=1)
    warehouse_id: str | None = None
    tenant_id: str | None = None


# ---------------------------------------------------------------------------
# Reservation Request Schemas
# ---------------------------------------------------------------------------
class CreateReservationRequest(BaseModel):
    variant_id: str
    warehouse_id: str
    tenant_id: str | None = None
    quantity: Decimal
    expires_at: datetime
    reference_number: str
    reason: str | None = None
    created_by: str | None = None


class ModifyReservationRequest(BaseModel):
    quantity: Decimal | None = None
    expires_at: datetime | None = None
    reason: str | None = None
    modified_by: str | None = None


class CancelReservationRequest(BaseModel):
    cancelled_by: str
    reason: str | None = None


class FulfillReservationRequest(BaseModel):
    quantity: Decimal
    used_by: str
    reason: str | None = None


class ExpireReservationsRequest(BaseModel):
    as_of: datetime | None = None
    warning_minutes: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Warehouse Request Schemas
# ---------------------------------------------------------------------------
class CreateWarehouseRequest(BaseModel):
    name: str
    code: str
    tenant_id: str | None = None
    description: str | None = None
    address: AddressSchema | None = None
    capacity: int = Field(ge=0, default=0)


class UpdateWarehouseRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    address: AddressSchema | None = None
    capacity: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Catalogue Request Schemas
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str = Field(max_length=255)
    description: str = Field(max_length=1000)
    tenant_id: str | None = None
    category_id: str | None = None


class UpdateProductRequest(BaseModel):
    name: str = Field(max_length=255)
    description: str = Field(max_length=1000)
    category_id: str | None = None


class CreateVariantRequest(BaseModel):
    sku: str = Field(max_length=100)
    name: str = Field(max_length=255)
    base_unit: str | None = None
    attributes: dict[str, str] | None = None
    variant_id: str | None = None


class UpdateVariantRequest(BaseModel):
    name: str = Field(max_length=255)
    base_unit: str | None = None
    attributes: dict[str, str] | None = None
