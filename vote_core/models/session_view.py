from typing import List, Literal, Optional
from pydantic import BaseModel

from vote_core.models.item import ItemId


class ItemView(BaseModel):
    id: ItemId
    image_url: str
    votes: Optional[int] = None   # counters are only revealed once the round is resolved
    wins: Optional[int] = None
    win_ratio: Optional[str] = None


class SessionView(BaseModel):
    state: Literal["loading", "ready", "resolved"]
    items: List[ItemView]
    outcome_message: Optional[str] = None
    error_message: Optional[str] = None
