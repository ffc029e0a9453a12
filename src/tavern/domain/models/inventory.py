from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional


DEFAULT_ITEM_ICON = "📦"
DEFAULT_ITEM_TYPE = "misc"
ITEM_TYPES: tuple[str, ...] = ("weapon", "armor", "consumable", "misc", "tool")


def item_key(name: object) -> str:
    return str(name or "").strip().lower()


def normalize_item_type(value: object) -> str:
    raw = str(value or "").strip().lower()
    return raw if raw in ITEM_TYPES else DEFAULT_ITEM_TYPE


@dataclass
class InventoryItem:
    name: str
    description: Optional[str] = None
    icon: str = DEFAULT_ITEM_ICON
    quantity: int = 1
    item_type: str = DEFAULT_ITEM_TYPE
    id: Optional[int] = None
    character_id: Optional[int] = None

    @property
    def key(self) -> str:
        return item_key(self.name)


class InventoryLedger:
    """Name-keyed item store; one entry per case-insensitive name."""

    def __init__(self, items: Iterable[InventoryItem] = ()) -> None:
        self._items: Dict[str, InventoryItem] = {}
        self._pending_upserts: Dict[str, InventoryItem] = {}
        self._pending_deletions: set[str] = set()
        for item in items:
            existing = self._items.get(item.key)
            if existing is not None:
                existing.quantity += max(1, int(item.quantity or 1))
                continue
            self._items[item.key] = item

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return item_key(name) in self._items

    def get(self, name: str) -> Optional[InventoryItem]:
        return self._items.get(item_key(name))

    def items(self) -> List[InventoryItem]:
        return list(self._items.values())

    def add_item(
        self,
        name: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        quantity: object = 1,
        item_type: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        key = item_key(name)
        if not key:
            return None
        try:
            amount = max(1, int(quantity or 1))
        except (TypeError, ValueError):
            amount = 1

        existing = self._items.get(key)
        if existing is not None:
            existing.quantity += amount
            item = existing
        else:
            item = InventoryItem(
                name=str(name).strip(),
                description=(str(description).strip() or None) if description is not None else None,
                icon=str(icon or "").strip() or DEFAULT_ITEM_ICON,
                quantity=amount,
                item_type=normalize_item_type(item_type),
            )
            self._items[key] = item

        self._pending_deletions.discard(key)
        self._pending_upserts[key] = item
        return item

    def remove_item(self, name: str, count: int = 1) -> Optional[InventoryItem]:
        key = item_key(name)
        existing = self._items.get(key)
        if existing is None:
            return None
        amount = max(1, int(count or 1))
        if existing.quantity > amount:
            existing.quantity -= amount
            self._pending_upserts[key] = existing
            return existing

        del self._items[key]
        self._pending_upserts.pop(key, None)
        self._pending_deletions.add(key)
        return None

    def pending_upserts(self) -> List[InventoryItem]:
        return list(self._pending_upserts.values())

    def pending_deletions(self) -> List[str]:
        return sorted(self._pending_deletions)

    def clear_pending(self) -> None:
        self._pending_upserts.clear()
        self._pending_deletions.clear()
