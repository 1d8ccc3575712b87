from typing import Tuple, Union
from pydantic import BaseModel, Field, model_validator

ItemId = Union[int, str]


class Item(BaseModel):
    id: ItemId
    image_url: str
    votes: int = Field(default=0, ge=0)
    wins: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _wins_within_votes(self) -> "Item":
        if self.wins > self.votes:
            raise ValueError(f"item {self.id!r} has more wins ({self.wins}) than votes ({self.votes})")
        return self

    def score(self) -> float:
        """Win ratio; 0 for an item nobody has voted on yet."""
        if self.votes > 0:
            return self.wins / self.votes
        return 0.0

    def with_delta(self, vote_delta: int, win_delta: int) -> "Item":
        return self.model_copy(update={
            "votes": self.votes + vote_delta,
            "wins": self.wins + win_delta,
        })


class Pair(BaseModel):
    items: Tuple[Item, Item]

    @model_validator(mode="after")
    def _distinct_ids(self) -> "Pair":
        if self.items[0].id == self.items[1].id:
            raise ValueError(f"pair needs two distinct items, got {self.items[0].id!r} twice")
        return self

    def at(self, index: int) -> Item:
        return self.items[index]

    def other(self, index: int) -> Item:
        return self.items[1 - index]

    def ids(self) -> Tuple[ItemId, ItemId]:
        return (self.items[0].id, self.items[1].id)
