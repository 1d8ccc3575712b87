from abc import ABC, abstractmethod
from typing import List, Sequence

from vote_core.errors import TransactionsUnsupported
from vote_core.models.item import Item, ItemId
from vote_core.models.vote_evaluation import ItemDelta


class IItemStore(ABC):
    @abstractmethod
    async def fetch_all(self) -> List[Item]:
        ...

    @abstractmethod
    async def apply_delta(self, item_id: ItemId, vote_delta: int, win_delta: int) -> Item:
        """
        Atomically add the deltas to one item's counters and return the updated item.
        Implementations must increment on the store side, never write back
        an absolute value computed from a client-held read.
        """
        ...

    # optional capability; stores with multi-row transactions override both
    def supports_transactions(self) -> bool:
        return False

    async def apply_deltas(self, deltas: Sequence[ItemDelta]) -> List[Item]:
        """All-or-nothing application of several deltas."""
        raise TransactionsUnsupported(f"{type(self).__name__} does not support multi-row transactions")
