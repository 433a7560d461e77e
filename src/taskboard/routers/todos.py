from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from ..errors import TodoNotFoundError
from ..repositories import Repository, get_repository
from ..schemas import TodoCreate, TodoOut, TodoUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)

_ERROR_RESPONSE = {
    "content": {"application/json": {"example": {"error": "Failed to fetch todos"}}},
}


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")


def _store_failure(message: str, exc: Exception) -> HTTPException:
    # the store's own message stays in the server log
    logger.exception("%s: %s", message, exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List every todo, newest created first.",
    responses={
        200: {"description": "List retrieved successfully"},
        500: {"description": "Store failure", **_ERROR_RESPONSE},
    },
)
def list_todos(repo: Repository = Depends(_get_repo)) -> List[TodoOut]:
    """
    List all todos ordered by created_at descending.
    """
    try:
        items = repo.list_all()
    except Exception as exc:
        raise _store_failure("Failed to fetch todos", exc) from exc
    return [TodoOut(**it) for it in items]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    summary="Create Todo",
    description="Create a new Todo item and return the stored record.",
    responses={
        200: {"description": "Todo created successfully"},
        422: {"description": "Validation error"},
        500: {"description": "Store failure"},
    },
)
def create_todo(payload: TodoCreate, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Create a new Todo. task_date defaults to today when omitted.
    """
    try:
        created = repo.insert(payload)
    except Exception as exc:
        raise _store_failure("Failed to create todo", exc) from exc
    logger.info("Created todo %s", created["id"])
    return TodoOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
        500: {"description": "Store failure"},
    },
)
def get_todo(todo_id: str, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    try:
        item = repo.get_by_id(todo_id)
    except TodoNotFoundError as exc:
        raise _not_found() from exc
    except Exception as exc:
        raise _store_failure("Failed to fetch todo", exc) from exc
    return TodoOut(**item)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Merge the fields present in the body into an existing Todo. "
        "Omitted fields are left unchanged."
    ),
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
        422: {"description": "Validation error"},
        500: {"description": "Store failure"},
    },
)
def update_todo(todo_id: str, payload: TodoUpdate, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Partial update of a Todo item.
    """
    try:
        updated = repo.update(todo_id, payload)
    except TodoNotFoundError as exc:
        raise _not_found() from exc
    except Exception as exc:
        raise _store_failure("Failed to update todo", exc) from exc
    return TodoOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    summary="Delete Todo",
    description="Delete a Todo item by ID. Deleting an unknown ID also succeeds.",
    responses={
        200: {"description": "Todo deleted (or already absent)"},
        500: {"description": "Store failure"},
    },
)
def delete_todo(todo_id: str, repo: Repository = Depends(_get_repo)) -> Dict[str, bool]:
    """
    Delete a Todo. Returns {"success": true} whether or not a row existed.
    """
    try:
        removed = repo.delete(todo_id)
    except Exception as exc:
        raise _store_failure("Failed to delete todo", exc) from exc
    if not removed:
        logger.info("Delete of unknown todo %s ignored", todo_id)
    return {"success": True}
