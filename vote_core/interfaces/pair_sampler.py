from abc import ABC, abstractmethod
from typing import Sequence

from vote_core.models.item import Item, Pair


class IPairSampler(ABC):
    @abstractmethod
    def sample(self, population: Sequence[Item]) -> Pair:
        ...
