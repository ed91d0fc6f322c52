"""Audit trail read side."""

from protean.utils.globals import current_domain

from ims import settings
from ims.audit.audit_log import AuditAction, AuditLog
from ims.dto import AuditEntry, Page
from ims.errors import InvalidInput
from ims.shared.timeutils import ensure_utc

MAX_AUDIT_PAGE_SIZE = 200


def _validate_page(page, page_size):
    if page < 1 or not 1 <= page_size <= MAX_AUDIT_PAGE_SIZE:
        raise InvalidInput(f"Page must be >= 1 and page size between 1 and {MAX_AUDIT_PAGE_SIZE}", field="page")


def _page(entries, total, page, page_size) -> Page[AuditEntry]:
    return Page[AuditEntry](
        items=[AuditEntry.from_log(e) for e in entries],
        total=total,
        page=page,
        page_size=page_size,
    )


def get_audit_logs(
    action=None,
    entity_type=None,
    entity_id=None,
    actor_id=None,
    variant_id=None,
    warehouse_id=None,
    from_date=None,
    to_date=None,
    search_term=None,
    ascending=False,
    page=1,
    page_size=50,
    tenant_id=None,
) -> Page[AuditEntry]:
    """Audit entries matching the filters, newest first by default."""
    _validate_page(page, page_size)
    if action is not None and action not in {a.value for a in AuditAction}:
        raise InvalidInput(f"Unknown audit action {action}", field="action")
    if from_date and to_date and ensure_utc(from_date) > ensure_utc(to_date):
        raise InvalidInput("from_date must not be after to_date", field="from_date")

    entries, total = current_domain.repository_for(AuditLog).search(
        tenant_id or settings.default_tenant(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=actor_id,
        variant_id=variant_id,
        warehouse_id=warehouse_id,
        from_date=from_date,
        to_date=to_date,
        search_term=search_term,
        ascending=ascending,
        page=page,
        page_size=page_size,
    )
    return _page(entries, total, page, page_size)


def get_entity_audit_history(entity_type, entity_id, page=1, page_size=50, tenant_id=None) -> Page[AuditEntry]:
    """Everything recorded against one entity, oldest first."""
    if not entity_type or not entity_id:
        raise InvalidInput("Entity type and id are required", field="entity_id")
    _validate_page(page, page_size)
    entries, total = current_domain.repository_for(AuditLog).search(
        tenant_id or settings.default_tenant(),
        entity_type=entity_type,
        entity_id=entity_id,
        ascending=True,
        page=page,
        page_size=page_size,
    )
    return _page(entries, total, page, page_size)
