"""FastAPI routes for IMS: ledger, refunds, reservations, warehouses, catalogue, audit and maintenance."""

import json
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, HTTPException, Query

from ims.api.schemas import (
    BulkLevelsRequest,
    CancelReservationRequest,
    CreateProductRequest,
    CreateReservationRequest,
    CreateVariantRequest,
    CreateWarehouseRequest,
    ExpireReservationsRequest,
    FulfillReservationRequest,
    InventorySettingsRequest,
    ModifyReservationRequest,
    MovementRequest,
    OpeningBalanceRequest,
    RefundRequest,
    TransferRequest,
    UpdateProductRequest,
    UpdateVariantRequest,
    UpdateWarehouseRequest,
)
from ims.audit.queries import get_audit_logs, get_entity_audit_history
from ims.catalogue.management import (
    CreateProduct,
    CreateVariant,
    DeleteProduct,
    DeleteVariant,
    UpdateProduct,
    UpdateVariant,
)
from ims.catalogue.queries import get_product, get_products, get_variant, get_variants
from ims.dto import (
    AuditEntry,
    ExpirySummary,
    MovementRecord,
    Page,
    ProductView,
    RefundValidation,
    ReservationView,
    SaleInfo,
    StockMutation,
    StockPosition,
    VariantView,
    WarehouseView,
)
from ims.errors import INVALID_INPUT, NOT_FOUND_CODES
from ims.inventory.adjustment import RecordAdjustment, RecordWriteOff
from ims.inventory.management import DeleteInventoryItem, RestoreInventoryItem, UpdateInventorySettings
from ims.inventory.opening_balance import SetOpeningBalance
from ims.inventory.queries import get_bulk_inventory_levels, get_inventory_level, get_low_stock_variants
from ims.inventory.receiving import RecordPurchase
from ims.inventory.returns import RecordRefund
from ims.inventory.sales import RecordSale
from ims.inventory.transfer import TransferStock
from ims.ledger.queries import get_refund_validation, get_sale_info, get_stock_movement_history
from ims.mediator import ask, send
from ims.reservation.cancellation import CancelReservation
from ims.reservation.creation import CreateReservation
from ims.reservation.expiry import sweep_reservations
from ims.reservation.fulfillment import FulfillReservation
from ims.reservation.modification import ModifyReservation
from ims.reservation.queries import get_reservation, get_reservations
from ims.shared.result import Result
from ims.warehouse.management import CreateWarehouse, DeactivateWarehouse, DeleteWarehouse, UpdateWarehouse
from ims.warehouse.queries import get_warehouse, get_warehouses

_INPUT_CODES = {INVALID_INPUT, "INVALID_QUANTITY"}


def _status_for(code: str) -> int:
    if code in NOT_FOUND_CODES:
        return 404
    if code in _INPUT_CODES:
        return 400
    return 409


def _unwrap(result: Result):
    """Return the result's value or raise the matching HTTPException."""
    if result.is_failure:
        raise HTTPException(
            status_code=_status_for(result.error_code),
            detail={"code": result.error_code, "message": result.error_message},
        )
    return result.value


def _metadata(body) -> str | None:
    return json.dumps(body.metadata) if body.metadata else None


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.post("/opening-balance", status_code=201, response_model=StockMutation)
async def set_opening_balance(body: OpeningBalanceRequest) -> StockMutation:
    return _unwrap(send(SetOpeningBalance, **body.model_dump(exclude_none=True)))


@inventory_router.post("/purchases", status_code=201, response_model=StockMutation)
async def record_purchase(body: MovementRequest) -> StockMutation:
    fields = body.model_dump(exclude_none=True, exclude={"metadata"})
    return _unwrap(send(RecordPurchase, movement_metadata=_metadata(body), **fields))


@inventory_router.post("/sales", status_code=201, response_model=StockMutation)
async def record_sale(body: MovementRequest) -> StockMutation:
    fields = body.model_dump(exclude_none=True, exclude={"metadata"})
    return _unwrap(send(RecordSale, movement_metadata=_metadata(body), **fields))


@inventory_router.post("/adjustments", status_code=201, response_model=StockMutation)
async def record_adjustment(body: MovementRequest) -> StockMutation:
    fields = body.model_dump(exclude_none=True, exclude={"metadata"})
    return _unwrap(send(RecordAdjustment, movement_metadata=_metadata(body), **fields))


@inventory_router.post("/write-offs", status_code=201, response_model=StockMutation)
async def record_write_off(body: MovementRequest) -> StockMutation:
    fields = body.model_dump(exclude_none=True, exclude={"metadata"})
    return _unwrap(send(RecordWriteOff, movement_metadata=_metadata(body), **fields))


@inventory_router.post("/transfers", status_code=201, response_model=StockMutation)
async def transfer_stock(body: TransferRequest) -> StockMutation:
    return _unwrap(send(TransferStock, **body.model_dump(exclude_none=True)))


@inventory_router.get("/levels/{variant_id}/{warehouse_id}", response_model=StockPosition)
async def inventory_level(variant_id: str, warehouse_id: str, tenant_id: str | None = None) -> StockPosition:
    return _unwrap(ask(get_inventory_level, variant_id, warehouse_id, tenant_id=tenant_id))


@inventory_router.post("/levels/bulk", response_model=list[StockPosition])
async def bulk_inventory_levels(body: BulkLevelsRequest) -> list[StockPosition]:
    return _unwrap(
        ask(
            get_bulk_inventory_levels,
            body.variant_ids,
            warehouse_id=body.warehouse_id,
            tenant_id=body.tenant_id,
        )
    )


@inventory_router.get("/low-stock", response_model=list[StockPosition])
async def low_stock(
    warehouse_id: str | None = None,
    threshold: Decimal | None = None,
    include_out_of_stock: bool = True,
    max_results: int = 50,
    tenant_id: str | None = None,
) -> list[StockPosition]:
    return _unwrap(
        ask(
            get_low_stock_variants,
            warehouse_id=warehouse_id,
            threshold=threshold,
            include_out_of_stock=include_out_of_stock,
            max_results=max_results,
            tenant_id=tenant_id,
        )
    )


@inventory_router.get("/movements", response_model=Page[MovementRecord])
async def movement_history(
    variant_id: str | None = None,
    warehouse_id: str | None = None,
    movement_type: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    reference_number: str | None = None,
    page: int = 1,
    page_size: int = 20,
    tenant_id: str | None = None,
) -> Page[MovementRecord]:
    return _unwrap(
        ask(
            get_stock_movement_history,
            variant_id=variant_id,
            warehouse_id=warehouse_id,
            movement_type=movement_type,
            from_date=from_date,
            to_date=to_date,
            reference_number=reference_number,
            page=page,
            page_size=page_size,
            tenant_id=tenant_id,
        )
    )


@inventory_router.patch("/{variant_id}/{warehouse_id}/settings", response_model=StockPosition)
async def update_settings(variant_id: str, warehouse_id: str, body: InventorySettingsRequest) -> StockPosition:
    return _unwrap(
        send(
            UpdateInventorySettings,
            variant_id=variant_id,
            warehouse_id=warehouse_id,
            **body.model_dump(exclude_none=True),
        )
    )


@inventory_router.delete("/{variant_id}/{warehouse_id}", response_model=StockPosition)
async def delete_item(
    variant_id: str, warehouse_id: str, deleted_by: str = Query(...), tenant_id: str | None = None
) -> StockPosition:
    return _unwrap(
        send(
            DeleteInventoryItem,
            variant_id=variant_id,
            warehouse_id=warehouse_id,
            deleted_by=deleted_by,
            tenant_id=tenant_id,
        )
    )


@inventory_router.post("/items/{inventory_item_id}/restore", response_model=StockPosition)
async def restore_item(inventory_item_id: str) -> StockPosition:
    return _unwrap(send(RestoreInventoryItem, inventory_item_id=inventory_item_id))


# ---------------------------------------------------------------------------
# Refunds Router
# ---------------------------------------------------------------------------
refund_router = APIRouter(prefix="/refunds", tags=["refunds"])


@refund_router.post("", status_code=201, response_model=StockMutation)
async def record_refund(body: RefundRequest) -> StockMutation:
    fields = body.model_dump(exclude_none=True, exclude={"metadata"})
    return _unwrap(send(RecordRefund, movement_metadata=_metadata(body), **fields))


@refund_router.get("/validation", response_model=RefundValidation)
async def refund_validation(
    original_sale_reference: str,
    quantity: Decimal,
    variant_id: str | None = None,
    warehouse_id: str | None = None,
    tenant_id: str | None = None,
) -> RefundValidation:
    return _unwrap(
        ask(
            get_refund_validation,
            original_sale_reference,
            quantity,
            variant_id=variant_id,
            warehouse_id=warehouse_id,
            tenant_id=tenant_id,
        )
    )


@refund_router.get("/sales/{sale_reference}", response_model=SaleInfo)
async def sale_info(sale_reference: str, tenant_id: str | None = None) -> SaleInfo:
    return _unwrap(ask(get_sale_info, sale_reference, tenant_id=tenant_id))


# ---------------------------------------------------------------------------
# Reservations Router
# ---------------------------------------------------------------------------
reservation_router = APIRouter(prefix="/reservations", tags=["reservations"])


@reservation_router.post("", status_code=201, response_model=ReservationView)
async def create_reservation(body: CreateReservationRequest) -> ReservationView:
    return _unwrap(send(CreateReservation, **body.model_dump(exclude_none=True)))


@reservation_router.get("", response_model=Page[ReservationView])
async def list_reservations(
    variant_id: str | None = None,
    warehouse_id: str | None = None,
    status: str | None = None,
    reference_number: str | None = None,
    page: int = 1,
    page_size: int = 20,
    tenant_id: str | None = None,
) -> Page[ReservationView]:
    return _unwrap(
        ask(
            get_reservations,
            variant_id=variant_id,
            warehouse_id=warehouse_id,
            status=status,
            reference_number=reference_number,
            page=page,
            page_size=page_size,
            tenant_id=tenant_id,
        )
    )


@reservation_router.get("/{reservation_id}", response_model=ReservationView)
async def reservation_detail(reservation_id: str) -> ReservationView:
    return _unwrap(ask(get_reservation, reservation_id))


@reservation_router.patch("/{reservation_id}", response_model=ReservationView)
async def modify_reservation(reservation_id: str, body: ModifyReservationRequest) -> ReservationView:
    return _unwrap(send(ModifyReservation, reservation_id=reservation_id, **body.model_dump(exclude_none=True)))


@reservation_router.post("/{reservation_id}/cancel", response_model=ReservationView)
async def cancel_reservation(reservation_id: str, body: CancelReservationRequest) -> ReservationView:
    return _unwrap(send(CancelReservation, reservation_id=reservation_id, **body.model_dump(exclude_none=True)))


@reservation_router.post("/{reservation_id}/fulfill", response_model=ReservationView)
async def fulfill_reservation(reservation_id: str, body: FulfillReservationRequest) -> ReservationView:
    return _unwrap(send(FulfillReservation, reservation_id=reservation_id, **body.model_dump(exclude_none=True)))


# ---------------------------------------------------------------------------
# Warehouse Router
# ---------------------------------------------------------------------------
warehouse_router = APIRouter(prefix="/warehouses", tags=["warehouses"])


@warehouse_router.post("", status_code=201, response_model=WarehouseView)
async def create_warehouse(body: CreateWarehouseRequest) -> WarehouseView:
    fields = body.model_dump(exclude_none=True, exclude={"address"})
    address = json.dumps(body.address.model_dump()) if body.address else None
    return _unwrap(send(CreateWarehouse, address=address, **fields))


@warehouse_router.get("", response_model=Page[WarehouseView])
async def list_warehouses(
    include_inactive: bool = False, page: int = 1, page_size: int = 20, tenant_id: str | None = None
) -> Page[WarehouseView]:
    return _unwrap(
        ask(get_warehouses, include_inactive=include_inactive, page=page, page_size=page_size, tenant_id=tenant_id)
    )


@warehouse_router.get("/{warehouse_id}", response_model=WarehouseView)
async def warehouse_detail(warehouse_id: str) -> WarehouseView:
    return _unwrap(ask(get_warehouse, warehouse_id))


@warehouse_router.put("/{warehouse_id}", response_model=WarehouseView)
async def update_warehouse(warehouse_id: str, body: UpdateWarehouseRequest) -> WarehouseView:
    fields = body.model_dump(exclude_none=True, exclude={"address"})
    address = json.dumps(body.address.model_dump()) if body.address else None
    return _unwrap(send(UpdateWarehouse, warehouse_id=warehouse_id, address=address, **fields))


@warehouse_router.put("/{warehouse_id}/deactivate", response_model=WarehouseView)
async def deactivate_warehouse(warehouse_id: str) -> WarehouseView:
    return _unwrap(send(DeactivateWarehouse, warehouse_id=warehouse_id))


@warehouse_router.delete("/{warehouse_id}", response_model=WarehouseView)
async def delete_warehouse(warehouse_id: str, deleted_by: str = Query(...)) -> WarehouseView:
    return _unwrap(send(DeleteWarehouse, warehouse_id=warehouse_id, deleted_by=deleted_by))


# ---------------------------------------------------------------------------
# Catalogue Routers
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["catalogue"])
variant_router = APIRouter(prefix="/variants", tags=["catalogue"])


def _attributes(body) -> str | None:
    return json.dumps(body.attributes) if body.attributes else None


@product_router.post("", status_code=201, response_model=ProductView)
async def create_product(body: CreateProductRequest) -> ProductView:
    return _unwrap(send(CreateProduct, **body.model_dump(exclude_none=True)))


@product_router.get("", response_model=Page[ProductView])
async def list_products(
    name: str | None = None,
    category_id: str | None = None,
    page: int = 1,
    page_size: int = 20,
    tenant_id: str | None = None,
) -> Page[ProductView]:
    return _unwrap(
        ask(get_products, name=name, category_id=category_id, page=page, page_size=page_size, tenant_id=tenant_id)
    )


@product_router.get("/{product_id}", response_model=ProductView)
async def product_detail(product_id: str) -> ProductView:
    return _unwrap(ask(get_product, product_id))


@product_router.put("/{product_id}", response_model=ProductView)
async def update_product(product_id: str, body: UpdateProductRequest) -> ProductView:
    return _unwrap(send(UpdateProduct, product_id=product_id, **body.model_dump(exclude_none=True)))


@product_router.delete("/{product_id}", response_model=ProductView)
async def delete_product(product_id: str, deleted_by: str = Query(...)) -> ProductView:
    return _unwrap(send(DeleteProduct, product_id=product_id, deleted_by=deleted_by))


@product_router.get("/{product_id}/variants", response_model=list[VariantView])
async def product_variants(product_id: str) -> list[VariantView]:
    return _unwrap(ask(get_variants, product_id))


@product_router.post("/{product_id}/variants", status_code=201, response_model=VariantView)
async def create_variant(product_id: str, body: CreateVariantRequest) -> VariantView:
    fields = body.model_dump(exclude_none=True, exclude={"attributes"})
    return _unwrap(send(CreateVariant, product_id=product_id, attributes=_attributes(body), **fields))


@variant_router.get("/{variant_id}", response_model=VariantView)
async def variant_detail(variant_id: str) -> VariantView:
    return _unwrap(ask(get_variant, variant_id))


@variant_router.put("/{variant_id}", response_model=VariantView)
async def update_variant(variant_id: str, body: UpdateVariantRequest) -> VariantView:
    fields = body.model_dump(exclude_none=True, exclude={"attributes"})
    return _unwrap(send(UpdateVariant, variant_id=variant_id, attributes=_attributes(body), **fields))


@variant_router.delete("/{variant_id}", response_model=VariantView)
async def delete_variant(variant_id: str, deleted_by: str = Query(...)) -> VariantView:
    return _unwrap(send(DeleteVariant, variant_id=variant_id, deleted_by=deleted_by))


# ---------------------------------------------------------------------------
# Audit Router
# ---------------------------------------------------------------------------
audit_router = APIRouter(prefix="/audit", tags=["audit"])


@audit_router.get("/logs", response_model=Page[AuditEntry])
async def audit_logs(
    action: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    actor_id: str | None = None,
    variant_id: str | None = None,
    warehouse_id: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    search: str | None = None,
    ascending: bool = False,
    page: int = 1,
    page_size: int = 50,
    tenant_id: str | None = None,
) -> Page[AuditEntry]:
    return _unwrap(
        ask(
            get_audit_logs,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            variant_id=variant_id,
            warehouse_id=warehouse_id,
            from_date=from_date,
            to_date=to_date,
            search_term=search,
            ascending=ascending,
            page=page,
            page_size=page_size,
            tenant_id=tenant_id,
        )
    )


@audit_router.get("/history/{entity_type}/{entity_id}", response_model=Page[AuditEntry])
async def entity_audit_history(
    entity_type: str, entity_id: str, page: int = 1, page_size: int = 50, tenant_id: str | None = None
) -> Page[AuditEntry]:
    return _unwrap(
        ask(get_entity_audit_history, entity_type, entity_id, page=page, page_size=page_size, tenant_id=tenant_id)
    )


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/expire-reservations", response_model=ExpirySummary)
async def expire_reservations(body: ExpireReservationsRequest | None = None) -> ExpirySummary:
    """Triggered by an external scheduler."""
    body = body or ExpireReservationsRequest()
    return sweep_reservations(as_of=body.as_of, warning_minutes=body.warning_minutes)
