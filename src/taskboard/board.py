"""
Optimistic todo board for presentation code.

State is never mutated in place: each transition returns a new BoardState,
and the TodoBoard controller replaces its current state with it. Every
create/update/delete is recorded as a Mutation tagged PENDING, then
COMMITTED with the server's record or ROLLED_BACK to the snapshot taken
before the change. Only in-flight mutations and the most recently settled
one are kept on the state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple
from uuid import uuid4

from .client import TodoClient, TodoClientError

logger = logging.getLogger(__name__)

Todo = Dict[str, Any]

# Fields a client may change on an existing todo
EDITABLE_FIELDS = ("title", "description", "completed", "task_date", "task_time")


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationStatus(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class Mutation:
    """One optimistic change and what is needed to revert it."""

    id: str
    kind: MutationKind
    todo_id: str
    status: MutationStatus = MutationStatus.PENDING
    # the record as it was before the change; None for creates
    before: Optional[Todo] = None
    # fields written by an update
    fields: Tuple[str, ...] = ()
    # list index a deleted todo is restored to
    position: int = 0


@dataclass(frozen=True)
class BoardState:
    todos: Tuple[Todo, ...] = ()
    mutations: Tuple[Mutation, ...] = field(default_factory=tuple)

    def find(self, todo_id: str) -> Optional[Todo]:
        for todo in self.todos:
            if todo["id"] == todo_id:
                return todo
        return None

    def mutation(self, mutation_id: str) -> Mutation:
        for m in self.mutations:
            if m.id == mutation_id:
                return m
        raise KeyError(mutation_id)

    @property
    def pending(self) -> Tuple[Mutation, ...]:
        return tuple(m for m in self.mutations if m.status is MutationStatus.PENDING)


def _settle(state: BoardState, m: Mutation, status: MutationStatus) -> Tuple[Mutation, ...]:
    # keep in-flight mutations plus the one just settled; older settled ones are dropped
    pending = tuple(p for p in state.pending if p.id != m.id)
    return pending + (replace(m, status=status),)


def _replace_todo(todos: Tuple[Todo, ...], todo_id: str, new: Todo) -> Tuple[Todo, ...]:
    return tuple(new if t["id"] == todo_id else t for t in todos)


def load(state: BoardState, todos: Any) -> BoardState:
    """Replace the list with the authoritative server list."""
    return replace(state, todos=tuple(dict(t) for t in todos))


def apply_create(state: BoardState, todo: Todo) -> Tuple[BoardState, Mutation]:
    m = Mutation(id=uuid4().hex, kind=MutationKind.CREATE, todo_id=todo["id"])
    new = replace(state, todos=(dict(todo),) + state.todos, mutations=state.mutations + (m,))
    return new, m


def apply_update(state: BoardState, todo_id: str, changes: Todo) -> Tuple[BoardState, Mutation]:
    current = state.find(todo_id)
    if current is None:
        raise KeyError(todo_id)
    m = Mutation(
        id=uuid4().hex,
        kind=MutationKind.UPDATE,
        todo_id=todo_id,
        before=dict(current),
        fields=tuple(changes),
    )
    todos = _replace_todo(state.todos, todo_id, {**current, **changes})
    return replace(state, todos=todos, mutations=state.mutations + (m,)), m


def apply_delete(state: BoardState, todo_id: str) -> Tuple[BoardState, Mutation]:
    current = state.find(todo_id)
    if current is None:
        raise KeyError(todo_id)
    position = state.todos.index(current)
    m = Mutation(
        id=uuid4().hex,
        kind=MutationKind.DELETE,
        todo_id=todo_id,
        before=dict(current),
        position=position,
    )
    todos = tuple(t for t in state.todos if t["id"] != todo_id)
    return replace(state, todos=todos, mutations=state.mutations + (m,)), m


def commit(state: BoardState, mutation_id: str, server_todo: Optional[Todo] = None) -> BoardState:
    """
    Mark a mutation committed. For creates and updates the local record is
    replaced by the server's canonical record.
    """
    m = state.mutation(mutation_id)
    todos = state.todos
    if server_todo is not None and m.kind is not MutationKind.DELETE:
        todos = _replace_todo(todos, m.todo_id, dict(server_todo))
    return replace(state, todos=todos, mutations=_settle(state, m, MutationStatus.COMMITTED))


def rollback(state: BoardState, mutation_id: str) -> BoardState:
    """
    Revert only what the mutation changed. Fields touched by later edits
    of the same todo are kept for those edits to settle.
    """
    m = state.mutation(mutation_id)
    todos = state.todos
    if m.kind is MutationKind.CREATE:
        todos = tuple(t for t in todos if t["id"] != m.todo_id)
    elif m.kind is MutationKind.UPDATE:
        current = state.find(m.todo_id)
        if current is not None and m.before is not None:
            restored = {**current, **{k: m.before.get(k) for k in m.fields}}
            todos = _replace_todo(todos, m.todo_id, restored)
    elif m.kind is MutationKind.DELETE:
        if m.before is not None and state.find(m.todo_id) is None:
            position = min(m.position, len(todos))
            todos = todos[:position] + (dict(m.before),) + todos[position:]
    return replace(state, todos=todos, mutations=_settle(state, m, MutationStatus.ROLLED_BACK))


class TodoBoard:
    """
    Event -> facade call -> state replace.

    Calls are not serialized; when two calls overlap, whichever response is
    applied last wins.
    """

    def __init__(
        self,
        client: TodoClient,
        on_change: Optional[Callable[[BoardState], None]] = None,
    ) -> None:
        self.client = client
        self.state = BoardState()
        self._on_change = on_change

    def _set(self, state: BoardState) -> None:
        self.state = state
        if self._on_change is not None:
            self._on_change(state)

    def refresh(self) -> BoardState:
        self._set(load(self.state, self.client.list_todos()))
        return self.state

    def add(
        self,
        title: str,
        description: Optional[str] = None,
        task_date: Optional[str] = None,
        task_time: Optional[str] = None,
    ) -> Todo:
        if not title or not title.strip():
            raise ValueError("title must not be empty")
        payload = {
            "title": title.strip(),
            "description": description or None,
            "task_date": task_date or date.today().isoformat(),
            "task_time": task_time or None,
        }
        temp = {
            "id": f"temp-{uuid4().hex}",
            **payload,
            "completed": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        state, m = apply_create(self.state, temp)
        self._set(state)
        try:
            created = self.client.create_todo(payload)
        except TodoClientError:
            self._revert(m)
            raise
        self._set(commit(self.state, m.id, created))
        return created

    def edit(self, todo_id: str, **changes: Any) -> Todo:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"cannot edit fields: {', '.join(sorted(unknown))}")
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValueError("title must not be empty")
        state, m = apply_update(self.state, todo_id, changes)
        self._set(state)
        try:
            updated = self.client.update_todo(todo_id, changes)
        except TodoClientError:
            self._revert(m)
            raise
        self._set(commit(self.state, m.id, updated))
        return updated

    def toggle(self, todo_id: str) -> Todo:
        current = self.state.find(todo_id)
        if current is None:
            raise KeyError(todo_id)
        return self.edit(todo_id, completed=not current["completed"])

    def remove(self, todo_id: str) -> None:
        state, m = apply_delete(self.state, todo_id)
        self._set(state)
        try:
            self.client.delete_todo(todo_id)
        except TodoClientError:
            self._revert(m)
            raise
        self._set(commit(self.state, m.id))

    def _revert(self, m: Mutation) -> None:
        logger.warning("Rolling back %s of todo %s", m.kind.value, m.todo_id)
        self._set(rollback(self.state, m.id))

    # tab views

    def pending(self) -> Tuple[Todo, ...]:
        return tuple(t for t in self.state.todos if not t["completed"])

    def completed(self) -> Tuple[Todo, ...]:
        return tuple(t for t in self.state.todos if t["completed"])

    def counts(self) -> Dict[str, int]:
        done = len(self.completed())
        return {"pending": len(self.state.todos) - done, "completed": done}
