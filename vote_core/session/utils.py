from typing import Optional

from vote_core.models.item import Item
from vote_core.models.round_state import Ready, Resolved, RoundState
from vote_core.models.session_view import ItemView, SessionView


def format_ratio(item: Item) -> str:
    return f"{item.score():.2f}"


def build_view(state: RoundState, error_message: Optional[str]) -> SessionView:
    if isinstance(state, Resolved):
        items = [
            ItemView(
                id=item.id,
                image_url=item.image_url,
                votes=item.votes,
                wins=item.wins,
                win_ratio=format_ratio(item),
            )
            for item in state.pair.items
        ]
        return SessionView(
            state=state.kind,
            items=items,
            outcome_message=state.outcome.message,
            error_message=error_message,
        )

    if isinstance(state, Ready):
        items = [ItemView(id=item.id, image_url=item.image_url) for item in state.pair.items]
        return SessionView(state=state.kind, items=items, error_message=error_message)

    return SessionView(state=state.kind, items=[], error_message=error_message)
