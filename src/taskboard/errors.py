"""Errors raised by the todo repositories."""

from __future__ import annotations


class TodoNotFoundError(LookupError):
    """No todo exists with the requested id."""

    def __init__(self, todo_id: str) -> None:
        super().__init__(f"Todo {todo_id!r} not found")
        self.todo_id = todo_id


class StoreError(RuntimeError):
    """The persistent store failed to complete an operation.

    The message is meant for server logs only; the API replaces it with a
    generic error before responding.
    """
