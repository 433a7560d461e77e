from __future__ import annotations

from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    The record shape every repository backend returns.

    Fields:
    - id: Opaque unique identifier assigned by the store
    - title: Short title (non-empty, trimmed on input via schemas)
    - description: Optional detailed description
    - completed: Boolean completion flag
    - task_date: Calendar date as an ISO 'YYYY-MM-DD' string
    - task_time: Optional time of day as 'HH:MM' or 'HH:MM:SS'
    - created_at: ISO8601 timestamp assigned by the store on insert
    """

    id: str
    title: str
    description: Optional[str]
    completed: bool
    task_date: str
    task_time: Optional[str]
    created_at: str
