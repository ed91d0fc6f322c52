"""Warehouse registry read side."""

from protean.utils.globals import current_domain

from ims import settings
from ims.dto import Page, WarehouseView
from ims.errors import InvalidInput
from ims.ledger.queries import MAX_PAGE_SIZE
from ims.warehouse.warehouse import Warehouse


def get_warehouse(warehouse_id) -> WarehouseView:
    return WarehouseView.from_warehouse(current_domain.repository_for(Warehouse).load(warehouse_id))


def get_warehouses(include_inactive=False, page=1, page_size=20, tenant_id=None) -> Page[WarehouseView]:
    if page < 1 or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidInput(f"Page must be >= 1 and page size between 1 and {MAX_PAGE_SIZE}", field="page")
    warehouses, total = current_domain.repository_for(Warehouse).list_warehouses(
        tenant_id or settings.default_tenant(),
        active_only=not include_inactive,
        page=page,
        page_size=page_size,
    )
    return Page[WarehouseView](
        items=[WarehouseView.from_warehouse(w) for w in warehouses],
        total=total,
        page=page,
        page_size=page_size,
    )
