from typing import Optional
from pydantic import BaseModel, Field


class VoteConfig(BaseModel):
    store_timeout_seconds: float = Field(default=10.0, gt=0)
    page_size: int = Field(default=100, ge=1)   # rows per request when reading the whole pool
    random_seed: Optional[int] = None
    ties_count_as_correct: bool = True
