"""Shared plumbing for the ledger command handlers."""

import json

from protean.utils.globals import current_domain

from ims import settings
from ims.errors import InvalidInput
from ims.inventory.item import InventoryItem
from ims.ledger.movement import StockMovement


def tenant_of(command) -> str:
    return command.tenant_id or settings.default_tenant()


def parse_metadata(raw) -> dict | None:
    """Decode the JSON metadata bag carried on a command."""
    if not raw:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        metadata = json.loads(raw)
    except ValueError as exc:
        raise InvalidInput(f"Metadata is not valid JSON: {exc}", field="metadata") from exc
    if not isinstance(metadata, dict):
        raise InvalidInput("Metadata must be a JSON object", field="metadata")
    return metadata


def persist(items, movements) -> None:
    """Add the touched items and their new ledger lines to the current unit of work."""
    item_repo = current_domain.repository_for(InventoryItem)
    movement_repo = current_domain.repository_for(StockMovement)
    for item in items:
        item_repo.add(item)
    for movement in movements:
        movement_repo.add(movement)
