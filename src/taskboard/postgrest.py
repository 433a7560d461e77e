"""Repository backed by a remote PostgREST endpoint (e.g. a Supabase project)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import StoreError, TodoNotFoundError
from .models import TodoEntity
from .repositories import Repository
from .schemas import TodoCreate, TodoOut, TodoUpdate

logger = logging.getLogger(__name__)

# Postgres invalid_text_representation, returned when an id is not a valid uuid
_INVALID_TEXT = "22P02"


class PostgrestRepository(Repository):
    """
    Todo repository talking to the `todos` table through PostgREST.

    The store assigns `id` and `created_at`. Every method is a single HTTP
    round trip.
    """

    name = "postgrest"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "todos",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.table = table
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = client or httpx.Client(
            base_url=f"{self.base_url}/rest/v1",
            timeout=timeout,
            headers=headers,
        )
        if client is not None:
            self._client.headers.update(headers)

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        returning: bool = False,
    ) -> httpx.Response:
        headers = {"Prefer": "return=representation"} if returning else None
        try:
            resp = self._client.request(
                method, f"/{self.table}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {self.table} failed: {e}") from e
        logger.debug("%s %s -> %s", method, resp.request.url, resp.status_code)
        return resp

    def _rows(self, resp: httpx.Response, todo_id: Optional[str] = None) -> List[TodoEntity]:
        if resp.is_success:
            try:
                body = resp.json()
            except ValueError as e:
                raise StoreError(f"invalid JSON from store: {e}") from e
            return [self._to_entity(row) for row in body]
        if todo_id is not None and self._error_code(resp) == _INVALID_TEXT:
            return []
        raise StoreError(f"store responded {resp.status_code}: {resp.text}")

    @staticmethod
    def _error_code(resp: httpx.Response) -> Optional[str]:
        try:
            return resp.json().get("code")
        except (ValueError, AttributeError):
            return None

    @staticmethod
    def _to_entity(row: Dict[str, Any]) -> TodoEntity:
        # validates the store row and normalizes the id to a string
        return TodoOut(**row).model_dump()  # type: ignore[return-value]

    @staticmethod
    def _by_id(todo_id: str) -> Dict[str, str]:
        return {"id": f"eq.{todo_id}", "select": "*"}

    def list_all(self) -> List[TodoEntity]:
        resp = self._request("GET", params={"select": "*", "order": "created_at.desc"})
        return self._rows(resp)

    def get_by_id(self, todo_id: str) -> TodoEntity:
        rows = self._rows(self._request("GET", params=self._by_id(todo_id)), todo_id)
        if not rows:
            raise TodoNotFoundError(todo_id)
        return rows[0]

    def insert(self, data: TodoCreate) -> TodoEntity:
        resp = self._request("POST", json=[data.insert_fields()], returning=True)
        rows = self._rows(resp)
        if not rows:
            raise StoreError("store returned no row for insert")
        return rows[0]

    def update(self, todo_id: str, data: TodoUpdate) -> TodoEntity:
        changes = data.changes()
        if not changes:
            return self.get_by_id(todo_id)
        resp = self._request("PATCH", params=self._by_id(todo_id), json=changes, returning=True)
        rows = self._rows(resp, todo_id)
        if not rows:
            raise TodoNotFoundError(todo_id)
        return rows[0]

    def delete(self, todo_id: str) -> bool:
        resp = self._request("DELETE", params=self._by_id(todo_id), returning=True)
        return bool(self._rows(resp, todo_id))
