import json
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv, find_dotenv

from vote_core.evaluators.win_ratio_evaluator import WinRatioEvaluator
from vote_core.interfaces.item_store import IItemStore
from vote_core.interfaces.pair_sampler import IPairSampler
from vote_core.interfaces.vote_evaluator import IVoteEvaluator
from vote_core.models.item import Item
from vote_core.models.vote_config import VoteConfig
from vote_core.selectors.random_pair_sampler import RandomPairSampler
from vote_core.session.vote_session import VoteSession
from vote_core.stores.in_memory_item_store import InMemoryItemStore
from vote_core.stores.postgrest_item_store import PostgrestItemStore

load_dotenv(find_dotenv())


def config_from_env(random_seed: Optional[int] = None) -> VoteConfig:
    overrides = {}
    if os.getenv("PAIRVOTE_STORE_TIMEOUT"):
        overrides["store_timeout_seconds"] = os.getenv("PAIRVOTE_STORE_TIMEOUT")
    if os.getenv("PAIRVOTE_PAGE_SIZE"):
        overrides["page_size"] = os.getenv("PAIRVOTE_PAGE_SIZE")
    # pydantic coerces and range-checks the string values
    return VoteConfig(random_seed=random_seed, **overrides)


def postgrest_store_from_env(cfg: VoteConfig) -> PostgrestItemStore:
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    if SUPABASE_URL is None:
        raise RuntimeError("environment variable 'SUPABASE_URL' is not set")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")
    if SUPABASE_KEY is None:
        raise RuntimeError("environment variable 'SUPABASE_KEY' is not set")

    return PostgrestItemStore(
        base_url=SUPABASE_URL,
        api_key=SUPABASE_KEY,
        table=os.getenv("PAIRVOTE_TABLE") or "items",
        page_size=cfg.page_size,
        timeout=cfg.store_timeout_seconds,
    )


def in_memory_store_from_file(items_path: str) -> InMemoryItemStore:
    """Seed from a JSON list of {"id", "image_url", "votes", "wins"} objects."""
    rows = json.loads(Path(items_path).read_text(encoding="utf-8"))
    return InMemoryItemStore(Item.model_validate(row) for row in rows)


def build_session(store: IItemStore, cfg: Optional[VoteConfig] = None) -> VoteSession:
    cfg = cfg or VoteConfig()
    sampler: IPairSampler = RandomPairSampler(seed=cfg.random_seed)
    evaluator: IVoteEvaluator = WinRatioEvaluator(ties_count_as_correct=cfg.ties_count_as_correct)
    return VoteSession(store=store, sampler=sampler, evaluator=evaluator, config=cfg)
