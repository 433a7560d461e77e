from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, List

from .errors import StoreError, TodoNotFoundError
from .models import TodoEntity
from .repositories import Repository, new_id, utc_now
from .schemas import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    task_date: str = "task_date"
    task_time: str = "task_time"
    created_at: str = "created_at"


_COLS = _Cols()


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    name = "sqlite"

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.task_date} TEXT NOT NULL,
                    {_COLS.task_time} TEXT NULL,
                    {_COLS.created_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "completed": bool(row[_COLS.completed]),
            "task_date": str(row[_COLS.task_date]),
            "task_time": row[_COLS.task_time],
            "created_at": str(row[_COLS.created_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, todo_id: str) -> TodoEntity:
        row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()
        if row is None:
            raise TodoNotFoundError(todo_id)
        return self._row_to_entity(row)

    def list_all(self) -> List[TodoEntity]:
        with self._conn() as conn:
            # rowid orders rows inserted within the same timestamp
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.created_at} DESC, rowid DESC"
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def get_by_id(self, todo_id: str) -> TodoEntity:
        with self._conn() as conn:
            return self._fetch(conn, todo_id)

    def insert(self, data: TodoCreate) -> TodoEntity:
        fields = data.insert_fields()
        todo_id = new_id()
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.description},
                    {_COLS.completed}, {_COLS.task_date}, {_COLS.task_time}, {_COLS.created_at})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    todo_id,
                    fields["title"],
                    fields["description"],
                    1 if fields["completed"] else 0,
                    fields["task_date"],
                    fields["task_time"],
                    utc_now(),
                ),
            )
            logger.debug("Inserted todo %s", todo_id)
            return self._fetch(conn, todo_id)

    def update(self, todo_id: str, data: TodoUpdate) -> TodoEntity:
        changes = data.changes()
        with self._conn() as conn:
            current = self._fetch(conn, todo_id)
            if not changes:
                return current
            if "completed" in changes:
                changes["completed"] = 1 if changes["completed"] else 0
            # column names come from the schema, never from the request body
            assignments = ", ".join(f"{name} = ?" for name in changes)
            conn.execute(
                f"UPDATE {_COLS.table} SET {assignments} WHERE {_COLS.id} = ?",
                (*changes.values(), todo_id),
            )
            return self._fetch(conn, todo_id)

    def delete(self, todo_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            return cur.rowcount > 0
