from abc import ABC, abstractmethod

from vote_core.models.item import ItemId, Pair
from vote_core.models.vote_evaluation import VoteEvaluation


class IVoteEvaluator(ABC):
    @abstractmethod
    def evaluate(self, pair: Pair, chosen_id: ItemId) -> VoteEvaluation:
        ...
