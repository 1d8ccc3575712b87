import asyncio
from typing import Any, Dict, List, Optional, Sequence

import requests
from rich import print

from vote_core.errors import ItemNotFound, StoreUnavailable
from vote_core.interfaces.item_store import IItemStore
from vote_core.models.item import Item, ItemId
from vote_core.models.vote_evaluation import ItemDelta

# PostgREST surfaces Postgres SQLSTATE codes in the error body; the vote
# functions in sql/vote_functions.sql raise no_data_found for unknown ids
NO_DATA_FOUND = "P0002"


class PostgrestItemStore(IItemStore):
    """
    Item store backed by a Supabase / PostgREST table.

    Reads page through the table. Writes go through the Postgres functions in
    sql/vote_functions.sql, which take the table name, so the increment happens
    inside the database (votes = votes + delta) rather than as an absolute
    value computed here.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "items",
        page_size: int = 100,
        timeout: float = 10.0,
        delta_function: str = "apply_vote_delta",
        batch_function: str = "apply_vote_deltas",
    ):
        if not api_key:
            raise ValueError("API key required. Set SUPABASE_KEY env var or pass api_key")

        self.base_url = base_url.rstrip("/")
        self.table = table
        self.page_size = page_size
        self.timeout = timeout
        self.delta_function = delta_function
        self.batch_function = batch_function

        self.session = requests.Session()
        self.session.headers.update({
            'accept': 'application/json',
            'apikey': api_key,
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json'
        })

    async def fetch_all(self) -> List[Item]:
        return await asyncio.to_thread(self._fetch_all_sync)

    async def apply_delta(self, item_id: ItemId, vote_delta: int, win_delta: int) -> Item:
        return await asyncio.to_thread(self._apply_delta_sync, item_id, vote_delta, win_delta)

    def supports_transactions(self) -> bool:
        return True

    async def apply_deltas(self, deltas: Sequence[ItemDelta]) -> List[Item]:
        return await asyncio.to_thread(self._apply_deltas_sync, list(deltas))

    # SYNC WORKERS (run off the event loop) ------------

    def _fetch_all_sync(self) -> List[Item]:
        # page with a stable order until a short page; the pool may exceed one page
        items: List[Item] = []
        offset = 0
        while True:
            rows = self._request(
                "GET",
                f"{self.base_url}/rest/v1/{self.table}",
                params={
                    "select": "*",
                    "order": "id",
                    "limit": str(self.page_size),
                    "offset": str(offset),
                },
            )
            items.extend(self._row_to_item(row) for row in rows)
            if len(rows) < self.page_size:
                break
            offset += len(rows)

        print(f"Fetched {len(items)} items from '{self.table}'")
        return items

    def _apply_delta_sync(self, item_id: ItemId, vote_delta: int, win_delta: int) -> Item:
        print(f"Updating votes for id: {item_id} (+{vote_delta} votes, +{win_delta} wins)")
        rows = self._rpc(
            self.delta_function,
            {"p_table": self.table, "p_id": item_id, "p_vote_delta": vote_delta, "p_win_delta": win_delta},
            candidate_ids=[item_id],
        )
        if not rows:
            raise ItemNotFound(item_id)
        return self._row_to_item(rows[0])

    def _apply_deltas_sync(self, deltas: List[ItemDelta]) -> List[Item]:
        print(f"Updating votes for ids: {[d.item_id for d in deltas]} in one transaction")
        rows = self._rpc(
            self.batch_function,
            {"p_table": self.table, "p_deltas": [{"id": d.item_id, "vote": d.vote, "win": d.win} for d in deltas]},
            candidate_ids=[d.item_id for d in deltas],
        )
        by_id = {str(row.get("id")): self._row_to_item(row) for row in rows}
        missing = [d.item_id for d in deltas if str(d.item_id) not in by_id]
        if missing:
            raise ItemNotFound(missing[0])
        return [by_id[str(d.item_id)] for d in deltas]

    # INTERNAL HELPERS ------------

    def _rpc(self, function: str, payload: Dict[str, Any], candidate_ids: List[ItemId]) -> List[Dict[str, Any]]:
        result = self._request(
            "POST",
            f"{self.base_url}/rest/v1/rpc/{function}",
            json=payload,
            candidate_ids=candidate_ids,
        )
        if isinstance(result, dict):
            return [result]
        return result or []

    def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        candidate_ids: Optional[List[ItemId]] = None,
    ) -> Any:
        # no retry here: a write whose response was lost may still have been applied
        try:
            response = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreUnavailable(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            body = self._error_body(response)
            if body.get("code") == NO_DATA_FOUND:
                raise ItemNotFound(self._missing_id(body, candidate_ids or []))
            raise StoreUnavailable(f"{method} {url} returned {response.status_code}: {body or response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise StoreUnavailable(f"{method} {url} returned a non-JSON body") from e

    @staticmethod
    def _error_body(response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _missing_id(body: Dict[str, Any], candidate_ids: List[ItemId]) -> Optional[ItemId]:
        detail = str(body.get("details") or "")
        for item_id in candidate_ids:
            if str(item_id) == detail:
                return item_id
        return candidate_ids[0] if len(candidate_ids) == 1 else (detail or None)

    @staticmethod
    def _row_to_item(row: Dict[str, Any]) -> Item:
        # counters can come back null for freshly seeded rows
        return Item(
            id=row["id"],
            image_url=row.get("image_url") or "",
            votes=int(row.get("votes") or 0),
            wins=int(row.get("wins") or 0),
        )
