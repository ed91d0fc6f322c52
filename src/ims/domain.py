"""IMS bounded context: Inventory Ledger, Reservations and Warehouses.

Handles the stock ledger (one InventoryItem per variant and warehouse, with an
append-only StockMovement history), stock reservations, refund validation and
the warehouse registry. All aggregates are standard CQRS aggregates persisted
through Protean repositories.
"""

from protean.domain import Domain

from ims.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ims = Domain(name="ims")
