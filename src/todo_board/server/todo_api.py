"""Todo board API endpoints.

This module provides a FastAPI router for the four board operations (create,
list, move, delete) plus the board view and column resequencing.  It is
mounted under ``<api_prefix>/todo`` by the main ``create_app`` factory.
"""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Body

from ..task_engine.engine import TodoEngine
from .models import Envelope, envelope


def create_todo_router(get_engine: Callable[[], TodoEngine], prefix: str = "") -> APIRouter:
    """Create the todo API router.

    Parameters
    ----------
    get_engine:
        A zero-argument callable returning the engine for the current app.
    prefix:
        Global prefix placed in front of ``/todo``.
    """
    router = APIRouter(prefix=f"{prefix}/todo", tags=["todo"])

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    @router.post("", response_model=Envelope, status_code=201)
    async def create_todo(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        todo = get_engine().create(payload)
        return envelope(todo.to_dict())

    @router.get("", response_model=Envelope)
    async def list_todos() -> dict[str, Any]:
        return envelope([t.to_dict() for t in get_engine().list_all()])

    @router.get("/board", response_model=Envelope)
    async def get_board() -> dict[str, Any]:
        columns = get_engine().board()
        return envelope({status: [t.to_dict() for t in todos] for status, todos in columns.items()})

    @router.get("/workflow", response_model=Envelope)
    async def get_workflow() -> dict[str, Any]:
        return envelope(get_engine().workflow.transitions)

    @router.get("/{todo_id}", response_model=Envelope)
    async def get_todo(todo_id: int) -> dict[str, Any]:
        return envelope(get_engine().get(todo_id).to_dict())

    @router.patch("/{todo_id}/move", response_model=Envelope)
    async def move_todo(todo_id: int, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        todo = get_engine().move(todo_id, payload)
        return envelope(todo.to_dict())

    @router.delete("/{todo_id}", response_model=Envelope)
    async def delete_todo(todo_id: int) -> dict[str, Any]:
        todo = get_engine().delete(todo_id)
        return envelope(todo.to_dict())

    # ------------------------------------------------------------------
    # Column maintenance
    # ------------------------------------------------------------------

    @router.post("/resequence/{status}", response_model=Envelope)
    async def resequence_column(status: str) -> dict[str, Any]:
        todos = get_engine().resequence(status)
        return envelope([t.to_dict() for t in todos])

    return router
