"""Read-only stock level queries.

Queries run outside any unit of work and return read models; call them
through ``ims.mediator.ask`` to get a ``Result``.
"""

from protean.utils.globals import current_domain

from ims import settings
from ims.dto import StockPosition
from ims.errors import InvalidInput
from ims.inventory.item import InventoryItem

MAX_LOW_STOCK_RESULTS = 500


def get_inventory_level(variant_id, warehouse_id, tenant_id=None) -> StockPosition:
    item = current_domain.repository_for(InventoryItem).load(
        variant_id, warehouse_id, tenant_id or settings.default_tenant()
    )
    return StockPosition.from_item(item)


def get_bulk_inventory_levels(variant_ids, warehouse_id=None, tenant_id=None) -> list[StockPosition]:
    """Positions for many variants at once; variants without inventory are left out."""
    if not variant_ids:
        raise InvalidInput("At least one variant id is required", field="variant_ids")
    items = current_domain.repository_for(InventoryItem).get_for_variants(
        variant_ids, tenant_id or settings.default_tenant(), warehouse_id=warehouse_id
    )
    items.sort(key=lambda i: (str(i.variant_id), str(i.warehouse_id)))
    return [StockPosition.from_item(i) for i in items]


def get_low_stock_variants(
    warehouse_id=None,
    threshold=None,
    include_out_of_stock=True,
    max_results=50,
    tenant_id=None,
) -> list[StockPosition]:
    if not 1 <= max_results <= MAX_LOW_STOCK_RESULTS:
        raise InvalidInput(f"max_results must be between 1 and {MAX_LOW_STOCK_RESULTS}", field="max_results")
    if threshold is not None and threshold < 0:
        raise InvalidInput("Threshold cannot be negative", field="threshold")

    items = current_domain.repository_for(InventoryItem).get_low_stock_variants(
        tenant_id or settings.default_tenant(),
        warehouse_id=warehouse_id,
        threshold=threshold,
        include_out_of_stock=include_out_of_stock,
        max_results=max_results,
    )
    return [StockPosition.from_item(i) for i in items]
