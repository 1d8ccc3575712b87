"""Fakes shared by the voting core tests."""

from typing import Dict, List, Optional, Sequence

from vote_core.errors import InsufficientPopulation
from vote_core.interfaces.pair_sampler import IPairSampler
from vote_core.models.item import Item, ItemId, Pair
from vote_core.stores.in_memory_item_store import InMemoryItemStore


def make_item(item_id: ItemId, votes: int = 0, wins: int = 0) -> Item:
    return Item(id=item_id, image_url=f"https://example.com/{item_id}.jpg", votes=votes, wins=wins)


class OrderedPairSampler(IPairSampler):
    """Deterministic sampler: the first two ids of `order` that are present, in that order."""

    def __init__(self, order: Sequence[ItemId]):
        self.order = list(order)
        self.calls = 0

    def sample(self, population: Sequence[Item]) -> Pair:
        self.calls += 1
        by_id = {item.id: item for item in population}
        picked = [by_id[i] for i in self.order if i in by_id][:2]
        if len(picked) < 2:
            raise InsufficientPopulation(len(by_id))
        return Pair(items=(picked[0], picked[1]))


class FlakyItemStore(InMemoryItemStore):
    """In-memory store whose calls can be made to fail on demand."""

    def __init__(self, items, transactional: bool = False):
        super().__init__(items, transactional=transactional)
        self.fail_fetch: Optional[Exception] = None
        self.fail_delta_for: Dict[ItemId, Exception] = {}
        self.fail_batch: Optional[Exception] = None
        self.delta_calls: List[ItemId] = []

    async def fetch_all(self) -> List[Item]:
        if self.fail_fetch is not None:
            raise self.fail_fetch
        return await super().fetch_all()

    async def apply_delta(self, item_id, vote_delta, win_delta):
        self.delta_calls.append(item_id)
        if item_id in self.fail_delta_for:
            raise self.fail_delta_for[item_id]
        return await super().apply_delta(item_id, vote_delta, win_delta)

    async def apply_deltas(self, deltas):
        if self.fail_batch is not None:
            raise self.fail_batch
        return await super().apply_deltas(deltas)
