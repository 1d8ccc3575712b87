from typing import Dict, Optional, Sequence
import random

from vote_core.errors import InsufficientPopulation
from vote_core.interfaces.pair_sampler import IPairSampler
from vote_core.models.item import Item, ItemId, Pair


class RandomPairSampler(IPairSampler):
    """
    Uniform over unordered pairs of distinct items, with the left/right order
    also random. random.sample draws without replacement, so there is no
    sort-with-random-comparator bias.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def sample(self, population: Sequence[Item]) -> Pair:
        # a snapshot could repeat a row; sample over distinct ids
        candidates: Dict[ItemId, Item] = {}
        for item in population:
            candidates.setdefault(item.id, item)

        if len(candidates) < 2:
            raise InsufficientPopulation(len(candidates))

        left, right = self._rng.sample(list(candidates.values()), 2)
        return Pair(items=(left, right))
