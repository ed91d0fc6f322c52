"""AuditLog aggregate: an append-only record of every change made through IMS.

Entries are written by the audit recorder as domain events are dispatched,
one per event, and are never updated afterwards.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String, Text

from ims.domain import ims
from ims.errors import InvalidInput


class AuditAction(Enum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    RESTORE = "Restore"
    STOCK_MOVEMENT = "StockMovement"
    STOCK_HOLD = "StockHold"
    RESERVATION_CREATE = "ReservationCreate"
    RESERVATION_MODIFY = "ReservationModify"
    RESERVATION_CANCEL = "ReservationCancel"
    RESERVATION_FULFIL = "ReservationFulfil"
    RESERVATION_EXPIRE = "ReservationExpire"
    CONFIGURATION_CHANGE = "ConfigurationChange"


@ims.aggregate
class AuditLog:
    tenant_id = String(required=True, max_length=50)
    action = String(required=True, max_length=50, choices=AuditAction)
    event_type = String(required=True, max_length=100)
    entity_type = String(required=True, max_length=50)
    entity_id = Identifier(required=True)
    actor_id = String(max_length=100)
    variant_id = Identifier()
    warehouse_id = Identifier()
    description = String(required=True, max_length=500)
    details = Text()  # JSON-serialized event payload
    occurred_at = DateTime(required=True)

    @property
    def details_dict(self) -> dict:
        return json.loads(self.details) if self.details else {}

    @classmethod
    def record(
        cls,
        action: AuditAction,
        event,
        entity_type: str,
        entity_id,
        description: str,
        actor_id=None,
        variant_id=None,
        warehouse_id=None,
    ) -> "AuditLog":
        description = (description or "").strip()
        if not description:
            raise InvalidInput("Audit description is required", field="description")
        return cls(
            tenant_id=event.tenant_id,
            action=action.value,
            event_type=event.__class__.__name__,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_id=actor_id,
            variant_id=str(variant_id) if variant_id else None,
            warehouse_id=str(warehouse_id) if warehouse_id else None,
            description=description,
            details=json.dumps(event.payload, default=str),
            occurred_at=datetime.now(UTC),
        )
