from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field

from vote_core.models.item import Pair
from vote_core.models.vote_evaluation import ItemDelta, VoteEvaluation

CORRECT_MESSAGE = "Correct! 🎉"
INCORRECT_MESSAGE = "Wrong 😬"
UPDATE_FAILED_MESSAGE = "Something went wrong updating stats 😞"
NOT_ENOUGH_ITEMS_MESSAGE = "Not enough items."


class RoundOutcome(BaseModel):
    kind: Literal["correct", "incorrect", "partial_update"]
    message: str
    evaluation: VoteEvaluation
    applied: List[ItemDelta] = Field(default_factory=list)
    pending: Optional[ItemDelta] = None   # set only for partial_update

    @classmethod
    def resolved(cls, evaluation: VoteEvaluation) -> "RoundOutcome":
        if evaluation.is_correct:
            kind, message = "correct", CORRECT_MESSAGE
        else:
            kind, message = "incorrect", INCORRECT_MESSAGE
        return cls(
            kind=kind,
            message=message,
            evaluation=evaluation,
            applied=[evaluation.chosen_delta, evaluation.other_delta],
        )


# -- Round states: exactly one is current at any time --

class Loading(BaseModel):
    kind: Literal["loading"] = "loading"


class Ready(BaseModel):
    kind: Literal["ready"] = "ready"
    pair: Pair


class Resolved(BaseModel):
    kind: Literal["resolved"] = "resolved"
    pair: Pair   # counters reflect the deltas that were applied
    outcome: RoundOutcome


RoundState = Union[Loading, Ready, Resolved]
