"""Typed failures raised by the task engine.

Each error carries the HTTP status the API layer maps it to.
"""

from __future__ import annotations


class TodoError(Exception):
    """Base class for all todo board failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TodoError):
    """Malformed or out-of-range input (empty title, unknown status, extra field)."""

    status_code = 400


class NotFoundError(TodoError):
    """The referenced todo id does not exist."""

    status_code = 404

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"Todo {todo_id} not found")
        self.todo_id = todo_id


class StorageError(TodoError):
    """The database is unreachable or a statement failed."""

    status_code = 500
