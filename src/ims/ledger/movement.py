"""StockMovement aggregate: one immutable line of an item's stock ledger.

Movements are produced by the InventoryItem mutation methods and persisted in
the same unit of work as the balance change. They are never updated after
creation; corrections are new movements.

Quantity sign carries the direction of the change and decides the entry type:

    Debit   quantity > 0   stock came in
    Credit  quantity <= 0  stock went out

Transfers are the only double-entry movements: a Credit on the source item and
a Debit on the destination item, each pointing at the other through
``paired_movement_id``.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean.fields import DateTime, Decimal, Identifier, Integer, String, Text

from ims.domain import ims
from ims.errors import InvalidInput, InvalidQuantity

MAX_REASON_LENGTH = 255
MAX_REFERENCE_LENGTH = 100


class MovementType(Enum):
    OPENING_BALANCE = "OpeningBalance"
    PURCHASE = "Purchase"
    SALE = "Sale"
    REFUND = "Refund"
    ADJUSTMENT = "Adjustment"
    WRITE_OFF = "WriteOff"
    TRANSFER = "Transfer"


class EntryType(Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"


def _sign_ok(movement_type: MovementType, quantity) -> bool:
    if movement_type == MovementType.OPENING_BALANCE:
        return quantity >= 0
    if movement_type in (MovementType.PURCHASE, MovementType.REFUND):
        return quantity > 0
    if movement_type in (MovementType.SALE, MovementType.WRITE_OFF):
        return quantity < 0
    return quantity != 0


def normalize_reason(reason: str | None) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise InvalidInput("Reason is required", field="reason")
    if len(reason) > MAX_REASON_LENGTH:
        raise InvalidInput(f"Reason cannot exceed {MAX_REASON_LENGTH} characters", field="reason")
    return reason


def normalize_reference(reference: str | None) -> str | None:
    reference = (reference or "").strip() or None
    if reference and len(reference) > MAX_REFERENCE_LENGTH:
        raise InvalidInput(
            f"Reference number cannot exceed {MAX_REFERENCE_LENGTH} characters",
            field="reference_number",
        )
    return reference


@ims.aggregate
class StockMovement:
    """A signed quantity change against one InventoryItem."""

    inventory_item_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    warehouse_id = Identifier(required=True)
    tenant_id = String(required=True, max_length=50)
    sequence = Integer(required=True, min_value=1)
    movement_type = String(required=True, choices=MovementType)
    quantity = Decimal()
    running_balance = Decimal()
    entry_type = String(required=True, choices=EntryType)
    reason = String(required=True, max_length=MAX_REASON_LENGTH)
    actor_id = String(max_length=100)
    reference_number = String(max_length=MAX_REFERENCE_LENGTH)
    movement_metadata = Text()  # JSON object of string keys and values
    paired_movement_id = Identifier()
    occurred_at = DateTime(required=True)

    @classmethod
    def record(
        cls,
        item,
        movement_type: MovementType,
        quantity,
        running_balance,
        sequence: int,
        reason: str,
        actor_id: str | None = None,
        reference_number: str | None = None,
        metadata: dict | None = None,
        movement_id: str | None = None,
        paired_movement_id: str | None = None,
    ) -> "StockMovement":
        """Build (but do not persist) the movement for a change on ``item``."""
        if not _sign_ok(movement_type, quantity):
            raise InvalidQuantity(f"Quantity {quantity} is not valid for a {movement_type.value} movement")

        return cls(
            id=movement_id or str(uuid4()),
            inventory_item_id=str(item.id),
            variant_id=str(item.variant_id),
            warehouse_id=str(item.warehouse_id),
            tenant_id=item.tenant_id,
            sequence=sequence,
            movement_type=movement_type.value,
            quantity=quantity,
            running_balance=running_balance,
            entry_type=(EntryType.DEBIT if quantity > 0 else EntryType.CREDIT).value,
            reason=normalize_reason(reason),
            actor_id=actor_id,
            reference_number=normalize_reference(reference_number),
            movement_metadata=json.dumps({str(k): str(v) for k, v in metadata.items()}) if metadata else None,
            paired_movement_id=paired_movement_id,
            occurred_at=datetime.now(UTC),
        )

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.movement_metadata) if self.movement_metadata else {}

    @property
    def is_debit(self) -> bool:
        return self.entry_type == EntryType.DEBIT.value

    @property
    def is_paired(self) -> bool:
        return self.paired_movement_id is not None
