"""Repository for the InventoryItem aggregate."""

from protean.exceptions import ObjectNotFoundError

from ims.domain import ims
from ims.errors import InventoryNotFound
from ims.inventory.item import InventoryItem
from ims.shared.paging import fetch_all


@ims.repository(part_of=InventoryItem)
class InventoryItemRepository:
    """Lookups by the (variant, warehouse) business key.

    Soft-deleted items are invisible to every lookup except ``get_by_id``
    with ``include_deleted=True``.
    """

    def get_by_variant_and_warehouse(self, variant_id, warehouse_id, tenant_id) -> InventoryItem | None:
        items = (
            self._dao.query.filter(
                variant_id=str(variant_id),
                warehouse_id=str(warehouse_id),
                tenant_id=tenant_id,
                is_deleted=False,
            )
            .all()
            .items
        )
        return items[0] if items else None

    def get_by_id(self, inventory_item_id, include_deleted=False) -> InventoryItem | None:
        try:
            item = self.get(str(inventory_item_id))
        except ObjectNotFoundError:
            return None
        if item.is_deleted and not include_deleted:
            return None
        return item

    def load(self, variant_id, warehouse_id, tenant_id, error=InventoryNotFound) -> InventoryItem:
        """Like ``get_by_variant_and_warehouse`` but raises a coded error when missing."""
        item = self.get_by_variant_and_warehouse(variant_id, warehouse_id, tenant_id)
        if item is None:
            raise error(f"No inventory for variant {variant_id} at warehouse {warehouse_id}")
        return item

    def get_for_variants(self, variant_ids, tenant_id, warehouse_id=None) -> list[InventoryItem]:
        filters = {"tenant_id": tenant_id, "is_deleted": False}
        if warehouse_id:
            filters["warehouse_id"] = str(warehouse_id)
        wanted = {str(v) for v in variant_ids}
        return [item for item in fetch_all(self._dao, **filters) if str(item.variant_id) in wanted]

    def get_low_stock_variants(
        self,
        tenant_id,
        warehouse_id=None,
        threshold=None,
        include_out_of_stock=True,
        max_results=50,
    ) -> list[InventoryItem]:
        """Items whose available stock is at or below a threshold, emptiest first.

        ``threshold`` overrides each item's own low-stock threshold.
        """
        filters = {"tenant_id": tenant_id, "is_deleted": False}
        if warehouse_id:
            filters["warehouse_id"] = str(warehouse_id)

        low = []
        for item in fetch_all(self._dao, **filters):
            limit = item.low_stock_threshold if threshold is None else threshold
            if item.available_stock > limit:
                continue
            if item.is_out_of_stock and not include_out_of_stock:
                continue
            low.append(item)

        low.sort(key=lambda i: (i.available_stock, str(i.variant_id)))
        return low[:max_results]
