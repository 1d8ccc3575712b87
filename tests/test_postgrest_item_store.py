from unittest.mock import MagicMock

import pytest
import requests

from systems.pairvote import config_from_env, postgrest_store_from_env
from vote_core.errors import ItemNotFound, StoreUnavailable
from vote_core.models.vote_evaluation import ItemDelta
from vote_core.stores.postgrest_item_store import PostgrestItemStore


def fake_response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def store():
    s = PostgrestItemStore(base_url="https://db.example.co/", api_key="secret", table="foot_pics", page_size=50)
    s.session = MagicMock()
    return s


def test_requires_api_key():
    with pytest.raises(ValueError):
        PostgrestItemStore(base_url="https://db.example.co", api_key="")


def test_session_carries_supabase_headers():
    s = PostgrestItemStore(base_url="https://db.example.co", api_key="secret")
    assert s.session.headers["apikey"] == "secret"
    assert s.session.headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_fetch_all_reads_table_in_id_order(store):
    store.session.request.return_value = fake_response(payload=[
        {"id": 1, "image_url": "a.jpg", "votes": 10, "wins": 7},
        {"id": 2, "image_url": "b.jpg", "votes": None, "wins": None},
    ])

    items = await store.fetch_all()

    method, url = store.session.request.call_args.args
    assert method == "GET"
    assert url == "https://db.example.co/rest/v1/foot_pics"
    assert store.session.request.call_args.kwargs["params"] == {
        "select": "*", "order": "id", "limit": "50", "offset": "0",
    }
    assert [(i.id, i.votes, i.wins) for i in items] == [(1, 10, 7), (2, 0, 0)]


def paged_table(rows):
    """Fake GET handler that honours limit/offset like PostgREST does."""
    def _request(method, url, params=None, json=None, timeout=None):
        start = int(params["offset"])
        return fake_response(payload=rows[start:start + int(params["limit"])])
    return _request


@pytest.mark.asyncio
async def test_fetch_all_pages_past_one_page(store):
    rows = [{"id": n, "image_url": f"{n}.jpg", "votes": 0, "wins": 0} for n in range(1, 151)]
    store.session.request.side_effect = paged_table(rows)

    items = await store.fetch_all()

    assert len(items) == 150
    assert [i.id for i in items] == list(range(1, 151))
    offsets = [c.kwargs["params"]["offset"] for c in store.session.request.call_args_list]
    assert offsets == ["0", "50", "100", "150"]


@pytest.mark.asyncio
async def test_fetch_all_stops_on_short_page(store):
    rows = [{"id": n, "image_url": f"{n}.jpg"} for n in range(1, 71)]
    store.session.request.side_effect = paged_table(rows)

    items = await store.fetch_all()

    assert len(items) == 70
    assert store.session.request.call_count == 2


@pytest.mark.asyncio
async def test_default_config_reads_whole_pool(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://db.example.co")
    monkeypatch.setenv("SUPABASE_KEY", "secret")
    monkeypatch.delenv("PAIRVOTE_PAGE_SIZE", raising=False)
    pg_store = postgrest_store_from_env(config_from_env())
    pg_store.session = MagicMock()
    rows = [{"id": n, "image_url": f"{n}.jpg", "votes": 1, "wins": 0} for n in range(1, 251)]
    pg_store.session.request.side_effect = paged_table(rows)

    population = await pg_store.fetch_all()

    assert len(population) == 250


@pytest.mark.asyncio
async def test_apply_delta_sends_increment_not_absolute(store):
    store.session.request.return_value = fake_response(payload=[{"id": 1, "image_url": "a.jpg", "votes": 11, "wins": 8}])

    confirmed = await store.apply_delta(1, 1, 1)

    method, url = store.session.request.call_args.args
    assert method == "POST"
    assert url == "https://db.example.co/rest/v1/rpc/apply_vote_delta"
    assert store.session.request.call_args.kwargs["json"] == {
        "p_table": "foot_pics", "p_id": 1, "p_vote_delta": 1, "p_win_delta": 1,
    }
    assert (confirmed.votes, confirmed.wins) == (11, 8)


@pytest.mark.asyncio
async def test_apply_delta_twice_sends_same_delta_twice(store):
    store.session.request.side_effect = [
        fake_response(payload=[{"id": 1, "image_url": "a.jpg", "votes": 1, "wins": 0}]),
        fake_response(payload=[{"id": 1, "image_url": "a.jpg", "votes": 2, "wins": 0}]),
    ]

    await store.apply_delta(1, 1, 0)
    second = await store.apply_delta(1, 1, 0)

    payloads = [c.kwargs["json"] for c in store.session.request.call_args_list]
    assert payloads == [{"p_table": "foot_pics", "p_id": 1, "p_vote_delta": 1, "p_win_delta": 0}] * 2
    assert second.votes == 2


@pytest.mark.asyncio
async def test_apply_deltas_uses_batch_function(store):
    store.session.request.return_value = fake_response(payload=[
        {"id": 2, "image_url": "b.jpg", "votes": 6, "wins": 5},
        {"id": 1, "image_url": "a.jpg", "votes": 1, "wins": 0},
    ])
    deltas = [ItemDelta(item_id=1, vote=1, win=0), ItemDelta(item_id=2, vote=1, win=0)]

    confirmed = await store.apply_deltas(deltas)

    assert store.supports_transactions()
    assert store.session.request.call_args.args[1].endswith("/rpc/apply_vote_deltas")
    assert store.session.request.call_args.kwargs["json"] == {
        "p_table": "foot_pics",
        "p_deltas": [{"id": 1, "vote": 1, "win": 0}, {"id": 2, "vote": 1, "win": 0}],
    }
    assert [i.id for i in confirmed] == [1, 2]


@pytest.mark.asyncio
async def test_no_data_found_maps_to_item_not_found(store):
    store.session.request.return_value = fake_response(
        status_code=400,
        payload={"code": "P0002", "message": "item not found", "details": "7"},
    )
    with pytest.raises(ItemNotFound) as exc_info:
        await store.apply_deltas([ItemDelta(item_id=3, vote=1, win=0), ItemDelta(item_id=7, vote=1, win=0)])
    assert exc_info.value.item_id == 7


@pytest.mark.asyncio
async def test_empty_rpc_result_is_item_not_found(store):
    store.session.request.return_value = fake_response(payload=[])
    with pytest.raises(ItemNotFound):
        await store.apply_delta(5, 1, 0)


@pytest.mark.asyncio
async def test_network_error_is_store_unavailable(store):
    store.session.request.side_effect = requests.ConnectionError("connection refused")
    with pytest.raises(StoreUnavailable):
        await store.fetch_all()


@pytest.mark.asyncio
async def test_server_error_is_store_unavailable(store):
    store.session.request.return_value = fake_response(status_code=503, payload=ValueError("no json"), text="down")
    with pytest.raises(StoreUnavailable):
        await store.apply_delta(1, 1, 0)


@pytest.mark.asyncio
async def test_non_json_body_is_store_unavailable(store):
    store.session.request.return_value = fake_response(payload=ValueError("no json"))
    with pytest.raises(StoreUnavailable):
        await store.fetch_all()
