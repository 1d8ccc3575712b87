"""Fixtures for the voting core tests."""

from typing import List, Optional

import pytest

from vote_core.evaluators.win_ratio_evaluator import WinRatioEvaluator
from vote_core.models.item import Item
from vote_core.models.vote_config import VoteConfig
from vote_core.session.vote_session import VoteSession

from helpers import OrderedPairSampler, make_item


@pytest.fixture
def scenario_items() -> List[Item]:
    return [make_item("A", votes=10, wins=7), make_item("B", votes=10, wins=3)]


@pytest.fixture
def make_session():
    def _make(store, order=("A", "B"), config: Optional[VoteConfig] = None) -> VoteSession:
        return VoteSession(
            store=store,
            sampler=OrderedPairSampler(order),
            evaluator=WinRatioEvaluator(),
            config=config or VoteConfig(store_timeout_seconds=1.0),
        )
    return _make
