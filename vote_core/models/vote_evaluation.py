from pydantic import BaseModel

from vote_core.models.item import ItemId


class ItemDelta(BaseModel):
    item_id: ItemId
    vote: int
    win: int


class VoteEvaluation(BaseModel):
    is_correct: bool
    chosen_score: float
    other_score: float
    chosen_delta: ItemDelta
    other_delta: ItemDelta   # always vote-only
