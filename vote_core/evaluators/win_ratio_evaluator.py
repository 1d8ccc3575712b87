from vote_core.errors import InvalidChoice
from vote_core.interfaces.vote_evaluator import IVoteEvaluator
from vote_core.models.item import ItemId, Pair
from vote_core.models.vote_evaluation import ItemDelta, VoteEvaluation


class WinRatioEvaluator(IVoteEvaluator):
    """
    Judges a pick against the pair's current win ratios.

    A pick is correct when the chosen item's ratio is at least the rival's.
    With ties_count_as_correct (the default) an equal ratio, including the
    0 vs 0 of two fresh items, is a correct pick. Both items always gain a
    vote; only a correct pick earns the chosen item a win.
    """

    def __init__(self, ties_count_as_correct: bool = True) -> None:
        self.ties_count_as_correct = ties_count_as_correct

    def evaluate(self, pair: Pair, chosen_id: ItemId) -> VoteEvaluation:
        if chosen_id == pair.at(0).id:
            chosen, other = pair.at(0), pair.at(1)
        elif chosen_id == pair.at(1).id:
            chosen, other = pair.at(1), pair.at(0)
        else:
            raise InvalidChoice(f"chosen id {chosen_id!r} is not one of the pair {pair.ids()}")

        # scores from the snapshot the user saw, never a fresh read
        chosen_score = chosen.score()
        other_score = other.score()

        if self.ties_count_as_correct:
            is_correct = chosen_score >= other_score
        else:
            is_correct = chosen_score > other_score

        return VoteEvaluation(
            is_correct=is_correct,
            chosen_score=chosen_score,
            other_score=other_score,
            chosen_delta=ItemDelta(item_id=chosen.id, vote=1, win=1 if is_correct else 0),
            other_delta=ItemDelta(item_id=other.id, vote=1, win=0),
        )
