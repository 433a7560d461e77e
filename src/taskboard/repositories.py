from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import lru_cache
from itertools import count
from threading import RLock
from typing import Dict, List, Tuple
from uuid import uuid4

from .errors import TodoNotFoundError
from .models import TodoEntity
from .schemas import TodoCreate, TodoUpdate
from .settings import get_settings

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as an ISO8601 string, used for created_at."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid4())


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for todo storage backends.

    Backends raise TodoNotFoundError for unknown ids on get/update and wrap
    any failure of the underlying store in StoreError.
    """

    name: str = "abstract"

    @abstractmethod
    def list_all(self) -> List[TodoEntity]:
        """Return every TodoEntity, newest created_at first."""

    @abstractmethod
    def get_by_id(self, todo_id: str) -> TodoEntity:
        """Return a TodoEntity by id, or raise TodoNotFoundError."""

    @abstractmethod
    def insert(self, data: TodoCreate) -> TodoEntity:
        """Store a new TodoEntity and return it with its assigned id and created_at."""

    @abstractmethod
    def update(self, todo_id: str, data: TodoUpdate) -> TodoEntity:
        """Merge the provided fields into an existing TodoEntity and return it."""

    @abstractmethod
    def delete(self, todo_id: str) -> bool:
        """Delete a TodoEntity by id. Return True if a row was removed; never raises for a missing id."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        # id -> (insertion sequence, entity); the sequence breaks created_at ties
        self._items: Dict[str, Tuple[int, TodoEntity]] = {}
        self._seq = count()

    def list_all(self) -> List[TodoEntity]:
        with self._lock:
            rows = sorted(
                self._items.values(),
                key=lambda pair: (pair[1]["created_at"], pair[0]),
                reverse=True,
            )
            # Return copies to avoid external mutation
            return [entity.copy() for _, entity in rows]

    def get_by_id(self, todo_id: str) -> TodoEntity:
        with self._lock:
            pair = self._items.get(todo_id)
            if pair is None:
                raise TodoNotFoundError(todo_id)
            return pair[1].copy()

    def insert(self, data: TodoCreate) -> TodoEntity:
        entity: TodoEntity = {
            "id": new_id(),
            **data.insert_fields(),  # type: ignore[typeddict-item]
            "created_at": utc_now(),
        }
        with self._lock:
            self._items[entity["id"]] = (next(self._seq), entity)
        logger.debug("Inserted todo %s", entity["id"])
        return entity.copy()

    def update(self, todo_id: str, data: TodoUpdate) -> TodoEntity:
        with self._lock:
            pair = self._items.get(todo_id)
            if pair is None:
                raise TodoNotFoundError(todo_id)
            seq, existing = pair
            updated = existing.copy()
            updated.update(data.changes())  # type: ignore[typeddict-item]
            self._items[todo_id] = (seq, updated)
            return updated.copy()

    def delete(self, todo_id: str) -> bool:
        with self._lock:
            return self._items.pop(todo_id, None) is not None


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the configured repository, created once per process.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    - postgrest: PostgrestRepository (remote Supabase/PostgREST table)
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    if settings.persistence_backend == "postgrest":
        from .postgrest import PostgrestRepository

        return PostgrestRepository(
            settings.store_url or "",
            settings.store_api_key or "",
            timeout=settings.store_timeout,
        )
    return InMemoryRepository()
