"""Repository for the Warehouse aggregate."""

from protean.exceptions import ObjectNotFoundError

from ims.domain import ims
from ims.errors import WarehouseNotFound
from ims.shared.paging import page_bounds
from ims.warehouse.warehouse import Warehouse


@ims.repository(part_of=Warehouse)
class WarehouseRepository:
    def get_by_id(self, warehouse_id) -> Warehouse | None:
        try:
            warehouse = self.get(str(warehouse_id))
        except ObjectNotFoundError:
            return None
        return None if warehouse.is_deleted else warehouse

    def load(self, warehouse_id) -> Warehouse:
        warehouse = self.get_by_id(warehouse_id)
        if warehouse is None:
            raise WarehouseNotFound(f"Warehouse {warehouse_id} not found")
        return warehouse

    def get_by_code(self, code, tenant_id) -> Warehouse | None:
        warehouses = (
            self._dao.query.filter(code=code.strip().upper(), tenant_id=tenant_id, is_deleted=False)
            .all()
            .items
        )
        return warehouses[0] if warehouses else None

    def list_warehouses(self, tenant_id, active_only=False, page=1, page_size=20) -> tuple[list[Warehouse], int]:
        filters = {"tenant_id": tenant_id, "is_deleted": False}
        if active_only:
            filters["is_active"] = True
        offset, limit = page_bounds(page, page_size)
        result = self._dao.query.filter(**filters).order_by("code").offset(offset).limit(limit).all()
        return result.items, result.total
