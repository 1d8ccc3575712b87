import asyncio
from typing import Dict, Iterable, List, Optional, Sequence

from vote_core.errors import ItemNotFound
from vote_core.interfaces.item_store import IItemStore
from vote_core.models.item import Item, ItemId
from vote_core.models.vote_evaluation import ItemDelta


class InMemoryItemStore(IItemStore):
    def __init__(self, items: Optional[Iterable[Item]] = None, transactional: bool = True) -> None:
        self._items: Dict[ItemId, Item] = {}
        self._lock = asyncio.Lock()
        self._transactional = transactional
        for item in items or []:
            self.add(item)

    def add(self, item: Item) -> None:
        # seeding happens outside the voting flow; replaces on duplicate id
        self._items[item.id] = item.model_copy()

    def get(self, item_id: ItemId) -> Optional[Item]:
        item = self._items.get(item_id)
        return item.model_copy() if item is not None else None

    def size(self) -> int:
        return len(self._items)

    async def fetch_all(self) -> List[Item]:
        # copies, so callers never hold the live counters
        return [item.model_copy() for item in self._items.values()]

    async def apply_delta(self, item_id: ItemId, vote_delta: int, win_delta: int) -> Item:
        async with self._lock:
            return self._increment(item_id, vote_delta, win_delta)

    def supports_transactions(self) -> bool:
        return self._transactional

    async def apply_deltas(self, deltas: Sequence[ItemDelta]) -> List[Item]:
        if not self._transactional:
            return await super().apply_deltas(deltas)
        async with self._lock:
            for d in deltas:
                if d.item_id not in self._items:
                    raise ItemNotFound(d.item_id)
            return [self._increment(d.item_id, d.vote, d.win) for d in deltas]

    # INTERNAL HELPERS ------------

    def _increment(self, item_id: ItemId, vote_delta: int, win_delta: int) -> Item:
        current = self._items.get(item_id)
        if current is None:
            raise ItemNotFound(item_id)
        updated = current.with_delta(vote_delta, win_delta)
        self._items[item_id] = updated
        return updated.model_copy()
