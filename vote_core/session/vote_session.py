import asyncio
from typing import Awaitable, Iterable, Optional, TypeVar

from rich import print
from rich.markup import escape

from vote_core.errors import (
    InsufficientPopulation,
    InvalidChoice,
    InvalidTransition,
    ItemNotFound,
    PartialUpdate,
    StoreUnavailable,
)
from vote_core.interfaces.item_store import IItemStore
from vote_core.interfaces.pair_sampler import IPairSampler
from vote_core.interfaces.vote_evaluator import IVoteEvaluator
from vote_core.models.item import Item, Pair
from vote_core.models.round_state import (
    NOT_ENOUGH_ITEMS_MESSAGE,
    UPDATE_FAILED_MESSAGE,
    Loading,
    Ready,
    Resolved,
    RoundOutcome,
    RoundState,
)
from vote_core.models.session_view import SessionView
from vote_core.models.vote_config import VoteConfig
from vote_core.models.vote_evaluation import VoteEvaluation
from vote_core.session import utils

T = TypeVar("T")

LOAD_FAILED_MESSAGE = "Could not load items 😞"


class VoteSession:
    """
    One user's stream of voting rounds over a shared item store.

    Loading -> Ready(pair) -> Resolved(pair, outcome) -> Ready(next pair) ...

    Any number of sessions may run against the same store; the only writes
    are the additive deltas issued by choose() (and retry_pending()).
    """

    def __init__(
        self,
        store: IItemStore,
        sampler: IPairSampler,
        evaluator: IVoteEvaluator,
        config: Optional[VoteConfig] = None,
    ):
        # injected dependencies
        self._store = store
        self._sampler = sampler
        self._evaluator = evaluator

        self._cfg: VoteConfig = config or VoteConfig()
        self._state: RoundState = Loading()
        self._error_message: Optional[str] = None

    # -- Simple Getters --
    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    def view(self) -> SessionView:
        return utils.build_view(self._state, self._error_message)

    # ==== ACTIONS ====

    async def start(self) -> RoundState:
        self._state = Loading()
        await self._load_pair()
        return self._state

    async def choose(self, index: int) -> RoundState:
        if not isinstance(self._state, Ready):
            raise InvalidTransition(f"choose() needs a ready round, current state is '{self._state.kind}'")
        if not isinstance(index, int) or isinstance(index, bool) or index not in (0, 1):
            raise InvalidChoice(f"choice index must be 0 or 1, got {index!r}")

        pair = self._state.pair
        evaluation = self._evaluator.evaluate(pair, pair.at(index).id)
        print(
            f"Chose {evaluation.chosen_delta.item_id!r} "
            f"({evaluation.chosen_score:.2f} vs {evaluation.other_score:.2f}) -> "
            f"{'correct' if evaluation.is_correct else 'incorrect'}"
        )

        if self._store.supports_transactions():
            await self._apply_in_transaction(pair, evaluation)
        else:
            await self._apply_one_by_one(pair, evaluation)
        return self._state

    async def advance(self) -> RoundState:
        if not isinstance(self._state, Resolved):
            raise InvalidTransition(f"advance() needs a resolved round, current state is '{self._state.kind}'")
        # on failure the resolved round stays put so the caller can try again
        await self._load_pair()
        return self._state

    async def retry_pending(self) -> RoundState:
        """Re-issue the delta left over from a partial update. Caller-initiated only."""
        if not isinstance(self._state, Resolved) or self._state.outcome.pending is None:
            raise InvalidTransition("retry_pending() needs a resolved round with a pending delta")

        resolved = self._state
        pending = resolved.outcome.pending
        try:
            confirmed = await self._call_store(self._store.apply_delta(pending.item_id, pending.vote, pending.win))
        except (StoreUnavailable, ItemNotFound):
            self._error_message = UPDATE_FAILED_MESSAGE
            raise

        self._resolve(resolved.pair, RoundOutcome.resolved(resolved.outcome.evaluation), [confirmed])
        return self._state

    # ==== WRITE PATHS ====

    async def _apply_in_transaction(self, pair: Pair, evaluation: VoteEvaluation) -> None:
        deltas = [evaluation.chosen_delta, evaluation.other_delta]
        try:
            confirmed = await self._call_store(self._store.apply_deltas(deltas))
        except StoreUnavailable:
            self._error_message = UPDATE_FAILED_MESSAGE
            raise
        except ItemNotFound as e:
            await self._abandon_round(e)
            raise

        self._resolve(pair, RoundOutcome.resolved(evaluation), confirmed)

    async def _apply_one_by_one(self, pair: Pair, evaluation: VoteEvaluation) -> None:
        chosen_delta, other_delta = evaluation.chosen_delta, evaluation.other_delta

        # nothing written yet: failures here leave the round as it was
        try:
            chosen_confirmed = await self._call_store(
                self._store.apply_delta(chosen_delta.item_id, chosen_delta.vote, chosen_delta.win)
            )
        except StoreUnavailable:
            self._error_message = UPDATE_FAILED_MESSAGE
            raise
        except ItemNotFound as e:
            await self._abandon_round(e)
            raise

        try:
            other_confirmed = await self._call_store(
                self._store.apply_delta(other_delta.item_id, other_delta.vote, other_delta.win)
            )
        except (StoreUnavailable, ItemNotFound) as e:
            outcome = RoundOutcome(
                kind="partial_update",
                message=UPDATE_FAILED_MESSAGE,
                evaluation=evaluation,
                applied=[chosen_delta],
                pending=other_delta,
            )
            self._resolve(pair, outcome, [chosen_confirmed])
            self._error_message = f"{UPDATE_FAILED_MESSAGE} (vote for {other_delta.item_id!r} not recorded)"
            raise PartialUpdate([chosen_delta], other_delta, e) from e

        self._resolve(pair, RoundOutcome.resolved(evaluation), [chosen_confirmed, other_confirmed])

    # ==== HELPERS ====

    async def _load_pair(self) -> None:
        try:
            population = await self._call_store(self._store.fetch_all())
            pair = self._sampler.sample(population)
        except InsufficientPopulation:
            print("[yellow]Not enough items to build a pair.[/yellow]")
            self._error_message = NOT_ENOUGH_ITEMS_MESSAGE
            raise
        except StoreUnavailable as e:
            print(f"[red]Error fetching items:[/red] {escape(str(e))}")
            self._error_message = LOAD_FAILED_MESSAGE
            raise

        print(f"New pair: {pair.ids()}")
        self._state = Ready(pair=pair)
        self._error_message = None

    async def _abandon_round(self, err: ItemNotFound) -> None:
        print(f"[red]{escape(str(err))}[/red]; dropping this round and sampling a fresh pair")
        self._state = Loading()
        try:
            await self._load_pair()
        except (InsufficientPopulation, StoreUnavailable) as load_err:
            # the caller re-raises the ItemNotFound; the session stays in Loading
            print(f"[red]Could not sample a fresh pair:[/red] {escape(str(load_err))}")
        finally:
            self._error_message = f"{UPDATE_FAILED_MESSAGE} ({err})"

    def _resolve(self, pair: Pair, outcome: RoundOutcome, confirmed: Iterable[Item]) -> None:
        # show the store's confirmed counters, which may include other sessions' votes
        by_id = {item.id: item for item in confirmed}
        shown = tuple(by_id.get(item.id, item) for item in pair.items)
        self._state = Resolved(pair=Pair(items=shown), outcome=outcome)
        if outcome.pending is None:
            self._error_message = None

    async def _call_store(self, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._cfg.store_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise StoreUnavailable(f"store call timed out after {self._cfg.store_timeout_seconds}s") from e
