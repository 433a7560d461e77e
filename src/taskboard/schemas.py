from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Incoming dates/times may arrive as ISO strings or as python objects
DateInput = Union[date, str]
TimeInput = Union[time, str]

# Columns a client may not set to null
_NON_NULLABLE = ("title", "completed", "task_date")

_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


def today() -> str:
    """Return the current local date as an ISO string."""
    return date.today().isoformat()


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    return s or None


def _parse_task_date(value: Optional[DateInput]) -> Optional[str]:
    """
    Normalize task_date input into an ISO 'YYYY-MM-DD' string.
    - datetime values keep only their date part.
    - strings must be ISO dates; an ISO datetime is truncated to its date.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date().isoformat()

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s).isoformat()
        except ValueError:
            try:
                return datetime.fromisoformat(s).date().isoformat()
            except ValueError as e:
                raise ValueError(
                    "Invalid task_date format. Use an ISO8601 date string (e.g., '2025-01-31')."
                ) from e

    raise ValueError("Invalid type for task_date; expected date or ISO8601 string.")


def _parse_task_time(value: Optional[TimeInput]) -> Optional[str]:
    """
    Validate task_time as 'HH:MM' or 'HH:MM:SS'. Blank strings mean no time.
    """
    if value is None:
        return None

    if isinstance(value, time):
        if value.tzinfo is not None:
            raise ValueError("task_time must not carry a timezone offset.")
        return value.isoformat(timespec="seconds" if value.second else "minutes")

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            if not _TIME_RE.match(s):
                raise ValueError(s)
            time.fromisoformat(s)
        except ValueError as e:
            raise ValueError("Invalid task_time format. Use 'HH:MM' or 'HH:MM:SS'.") from e
        return s

    raise ValueError("Invalid type for task_time; expected time or 'HH:MM' string.")


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.

    `id` and `created_at` are assigned by the store; if a client sends them
    they are ignored along with any other unknown field.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "Semi-skimmed, two litres",
                "task_date": "2025-02-01",
                "task_time": "09:30",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(default=False, description="Completion status flag")
    task_date: Optional[str] = Field(
        default=None,
        description="Scheduled date (ISO 'YYYY-MM-DD'); defaults to the creation date",
    )
    task_time: Optional[str] = Field(
        default=None, description="Optional scheduled time of day ('HH:MM' or 'HH:MM:SS')"
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and require a non-empty title.
        """
        s = v.strip()
        if not s:
            raise ValueError("title must not be empty")
        return s

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("task_date", mode="before")
    @classmethod
    def parse_task_date(cls, v: Optional[DateInput]) -> Optional[str]:
        return _parse_task_date(v)

    @field_validator("task_time", mode="before")
    @classmethod
    def parse_task_time(cls, v: Optional[TimeInput]) -> Optional[str]:
        return _parse_task_time(v)

    def insert_fields(self) -> Dict[str, Any]:
        """
        Return the column values to insert, with the task_date default applied.
        """
        return {
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "task_date": self.task_date or today(),
            "task_time": self.task_time,
        }


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only fields present in the request are merged.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "completed": True,
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    task_date: Optional[str] = Field(default=None, description="Scheduled date (ISO 'YYYY-MM-DD')")
    task_time: Optional[str] = Field(
        default=None, description="Scheduled time of day; null clears it"
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and require it non-empty.
        """
        if v is None:
            return v
        s = v.strip()
        if not s:
            raise ValueError("title must not be empty")
        return s

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("task_date", mode="before")
    @classmethod
    def parse_task_date(cls, v: Optional[DateInput]) -> Optional[str]:
        return _parse_task_date(v)

    @field_validator("task_time", mode="before")
    @classmethod
    def parse_task_time(cls, v: Optional[TimeInput]) -> Optional[str]:
        return _parse_task_time(v)

    def changes(self) -> Dict[str, Any]:
        """
        Return only the fields the client sent. A null for a non-nullable
        column is dropped rather than written.
        """
        out: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name in _NON_NULLABLE:
                continue
            out[name] = value
        return out


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5f0c6d1e-8a53-4a3c-9d7e-2b1d6c0f4a11",
                "title": "Buy milk",
                "description": None,
                "completed": False,
                "task_date": "2025-02-01",
                "task_time": None,
                "created_at": "2025-01-25T10:15:30.123456+00:00",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    task_date: str = Field(..., description="Scheduled date (ISO 'YYYY-MM-DD')")
    task_time: Optional[str] = Field(default=None, description="Scheduled time of day")
    created_at: str = Field(..., description="Creation timestamp (ISO8601)")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        # remote stores may use integer or uuid primary keys
        return str(v)
