"""HTTP client facade over the todo Resource API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

API_BASE = "/api/todos"


def _item_path(todo_id: str) -> str:
    # ids are opaque; escape everything so one id is always one path segment
    return f"{API_BASE}/{quote(str(todo_id), safe='')}"


class TodoClientError(Exception):
    """A Resource API call did not succeed."""


class TodoClientNotFoundError(TodoClientError):
    """The requested todo does not exist (HTTP 404)."""


class TodoClient:
    """
    Thin synchronous facade used by presentation code.

    Every method issues one request; any non-2xx response raises
    TodoClientError carrying only the name of the failed operation. There
    are no retries.

    Either pass a base_url, or an existing httpx.Client (for example a
    fastapi TestClient) already pointed at the service.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        http: Optional[httpx.Client] = None,
    ) -> None:
        if http is None and base_url is None:
            raise ValueError("either base_url or http must be given")
        self._owns_client = http is None
        self._http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "TodoClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _send(self, method: str, path: str, failure: str, json: Any = None) -> httpx.Response:
        try:
            resp = self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TodoClientError(failure) from e
        return resp

    def list_todos(self) -> List[Dict[str, Any]]:
        resp = self._send("GET", API_BASE, "Failed to fetch todos")
        if not resp.is_success:
            raise TodoClientError("Failed to fetch todos")
        return resp.json()

    def get_todo(self, todo_id: str) -> Dict[str, Any]:
        resp = self._send("GET", _item_path(todo_id), "Failed to fetch todo")
        if resp.status_code == 404:
            raise TodoClientNotFoundError("Todo not found")
        if not resp.is_success:
            raise TodoClientError("Failed to fetch todo")
        return resp.json()

    def create_todo(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        resp = self._send("POST", API_BASE, "Failed to create todo", json=dict(data))
        if not resp.is_success:
            raise TodoClientError("Failed to create todo")
        return resp.json()

    def update_todo(self, todo_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        resp = self._send("PUT", _item_path(todo_id), "Failed to update todo", json=dict(data))
        if not resp.is_success:
            raise TodoClientError("Failed to update todo")
        return resp.json()

    def delete_todo(self, todo_id: str) -> None:
        resp = self._send("DELETE", _item_path(todo_id), "Failed to delete todo")
        if not resp.is_success:
            raise TodoClientError("Failed to delete todo")
