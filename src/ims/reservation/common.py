"""Shared plumbing for the reservation command handlers."""

from protean.utils.globals import current_domain

from ims.errors import InventoryNotFound
from ims.inventory.item import InventoryItem
from ims.reservation.reservation import Reservation


def load_reservation_and_item(reservation_id):
    """Load a reservation together with the item holding its stock."""
    reservation = current_domain.repository_for(Reservation).load(reservation_id)
    item = current_domain.repository_for(InventoryItem).get_by_id(reservation.inventory_item_id)
    if item is None:
        raise InventoryNotFound(f"Inventory item {reservation.inventory_item_id} for reservation not found")
    return reservation, item


def persist(reservation, item) -> None:
    current_domain.repository_for(InventoryItem).add(item)
    current_domain.repository_for(Reservation).add(reservation)
