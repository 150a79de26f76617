"""
Inventory queries.

Items are listed by category, then name. Rollups only look at active
items; inactive ones stay in the store but drop out of counts and alerts.
"""

from movemaster.models.entities import InventoryItem
from movemaster.models.store import Store


def _shelf_order(item: InventoryItem) -> tuple[str, str]:
    return (item.category.casefold(), item.name.casefold())


def inventory_items(store: Store, include_inactive: bool = True) -> list[InventoryItem]:
    """Every item sorted by category, then name."""
    items = sorted(store.inventory, key=_shelf_order)
    if include_inactive:
        return items
    return [item for item in items if item.active]


def low_stock_items(store: Store) -> list[InventoryItem]:
    """Active items at or below their low-stock threshold."""
    return [item for item in inventory_items(store) if item.is_low_stock]


def inventory_by_category(store: Store) -> list[tuple[str, int]]:
    """
    Active item count per category, largest first.

    Categories with the same count keep alphabetical order.
    """
    counts: dict[str, int] = {}
    for item in inventory_items(store, include_inactive=False):
        counts[item.category] = counts.get(item.category, 0) + 1
    return sorted(counts.items(), key=lambda entry: -entry[1])


def inventory_on_date(store: Store, key: str) -> list[InventoryItem]:
    """Items tied to the move date ``key``."""
    return [item for item in inventory_items(store) if item.date == key]
