"""Repository for AuditLog entries."""

from datetime import datetime

from ims.audit.audit_log import AuditLog
from ims.domain import ims
from ims.shared.paging import page_bounds
from ims.shared.timeutils import ensure_utc


@ims.repository(part_of=AuditLog)
class AuditLogRepository:
    def search(
        self,
        tenant_id: str,
        action: str | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
        actor_id: str | None = None,
        variant_id: str | None = None,
        warehouse_id: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        search_term: str | None = None,
        ascending: bool = False,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[AuditLog], int]:
        """One page of entries, newest first unless ``ascending``, plus the total match count."""
        filters = {"tenant_id": tenant_id}
        for field, value in (
            ("action", action),
            ("entity_type", entity_type),
            ("entity_id", entity_id),
            ("actor_id", actor_id),
            ("variant_id", variant_id),
            ("warehouse_id", warehouse_id),
        ):
            if value:
                filters[field] = str(value)
        if from_date:
            filters["occurred_at__gte"] = ensure_utc(from_date)
        if to_date:
            filters["occurred_at__lte"] = ensure_utc(to_date)
        if search_term:
            filters["description__icontains"] = search_term

        offset, limit = page_bounds(page, page_size)
        order = "occurred_at" if ascending else "-occurred_at"
        result = self._dao.query.filter(**filters).order_by(order).offset(offset).limit(limit).all()
        return result.items, result.total
