"""Repository for StockMovement ledger lines."""

from datetime import datetime

from ims.domain import ims
from ims.ledger.movement import StockMovement
from ims.shared.paging import fetch_all, page_bounds
from ims.shared.timeutils import ensure_utc


@ims.repository(part_of=StockMovement)
class StockMovementRepository:
    """Ledger reads. Movements are written only through ``add``."""

    def get_movements_by_reference(self, reference_number: str, tenant_id: str) -> list[StockMovement]:
        """All movements sharing a reference number, oldest first."""
        return fetch_all(self._dao, order_by="occurred_at", reference_number=reference_number, tenant_id=tenant_id)

    def get_ledger(self, inventory_item_id: str) -> list[StockMovement]:
        """Full ledger of one item in sequence order."""
        movements = fetch_all(self._dao, inventory_item_id=str(inventory_item_id))
        return sorted(movements, key=lambda m: m.sequence)

    def get_movement_history(
        self,
        tenant_id: str,
        variant_id: str | None = None,
        warehouse_id: str | None = None,
        movement_type: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        reference_number: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[StockMovement], int]:
        """One page of movements, newest first, plus the total match count."""
        filters = {"tenant_id": tenant_id}
        if variant_id:
            filters["variant_id"] = str(variant_id)
        if warehouse_id:
            filters["warehouse_id"] = str(warehouse_id)
        if movement_type:
            filters["movement_type"] = movement_type
        if reference_number:
            filters["reference_number"] = reference_number
        if from_date:
            filters["occurred_at__gte"] = ensure_utc(from_date)
        if to_date:
            filters["occurred_at__lte"] = ensure_utc(to_date)

        offset, limit = page_bounds(page, page_size)
        result = self._dao.query.filter(**filters).order_by("-occurred_at").offset(offset).limit(limit).all()
        return result.items, result.total
