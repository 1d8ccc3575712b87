from typing import List, Optional

from vote_core.models.vote_evaluation import ItemDelta


class VoteError(Exception):
    """Base class for everything the voting core raises on purpose."""


class InsufficientPopulation(VoteError):
    def __init__(self, size: int):
        super().__init__(f"need at least 2 items to build a pair, store returned {size}")
        self.size = size


class StoreUnavailable(VoteError):
    """Transport or backend failure; the caller may retry the same action."""


class ItemNotFound(VoteError):
    def __init__(self, item_id):
        super().__init__(f"item {item_id!r} not found in store")
        self.item_id = item_id


class InvalidChoice(VoteError):
    pass


class InvalidTransition(VoteError):
    pass


class TransactionsUnsupported(VoteError):
    """apply_deltas() called on a store whose supports_transactions() is False."""


class PartialUpdate(VoteError):
    """
    One delta of a round was written and the other was not.
    The pending delta is NOT retried automatically: the failed write may
    have landed even though the response was lost.
    """

    def __init__(self, applied: List[ItemDelta], pending: ItemDelta, cause: Optional[BaseException] = None):
        super().__init__(
            f"partial update: applied {[d.item_id for d in applied]}, "
            f"pending {pending.item_id!r} ({cause})"
        )
        self.applied = applied
        self.pending = pending
        self.cause = cause
