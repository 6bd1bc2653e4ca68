"""Todo engine: the operations that place cards on the board.

This is the primary entry-point for all todo manipulation.  It wraps
:class:`TodoStore` with input validation, the status workflow check, and
board grouping.  Positions are taken from the caller as-is: nothing here
renumbers other cards unless :meth:`TodoEngine.resequence` is called
explicitly.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from loguru import logger

from .errors import NotFoundError, ValidationError
from .model import Todo, TodoStatus, next_timestamp
from .schemas import TodoCreate, TodoMove, parse_payload
from .store import TodoStore


# ---------------------------------------------------------------------------
# Status workflow
# ---------------------------------------------------------------------------

def _complete_graph() -> dict[TodoStatus, frozenset[TodoStatus]]:
    return {status: frozenset(TodoStatus) for status in TodoStatus}


class StatusWorkflow:
    """Transition table consulted by :meth:`TodoEngine.move`.

    The default table allows every transition.  A restricted table maps each
    source status to the statuses it may move to; staying in the same column
    is always allowed so cards can be reordered.
    """

    def __init__(self, transitions: Optional[Mapping[Any, Any]] = None) -> None:
        if transitions is None:
            self._allowed = _complete_graph()
            return
        allowed: dict[TodoStatus, frozenset[TodoStatus]] = {}
        for source, targets in transitions.items():
            src = TodoStatus.parse(source)
            allowed[src] = frozenset({src, *(TodoStatus.parse(t) for t in targets or [])})
        for status in TodoStatus:
            allowed.setdefault(status, frozenset({status}))
        self._allowed = allowed

    @property
    def transitions(self) -> dict[str, list[str]]:
        return {
            src.value: [dst.value for dst in TodoStatus if dst in targets]
            for src, targets in self._allowed.items()
        }

    def allows(self, source: TodoStatus, target: TodoStatus) -> bool:
        return target in self._allowed.get(source, frozenset())

    def check(self, source: TodoStatus, target: TodoStatus) -> None:
        if not self.allows(source, target):
            raise ValidationError(f"Transition {source.value} -> {target.value} is not allowed")


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TodoEngine:
    """Sole authority on todo status and position.

    Parameters
    ----------
    store:
        The persistence handle.  Passed in so tests can use an in-memory
        database.
    workflow:
        Transition table for :meth:`move`; permissive when omitted.
    """

    def __init__(self, store: TodoStore, workflow: Optional[StatusWorkflow] = None) -> None:
        self.store = store
        self.workflow = workflow or StatusWorkflow()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, payload: Any) -> Todo:
        """Validate *payload* and persist a new todo, returning it."""
        data = parse_payload(TodoCreate, payload)
        todo = self.store.insert(
            title=data.title,
            description=data.description,
            status=data.status,
            position=data.position,
            now=next_timestamp(),
        )
        logger.info("Created todo {} in {}@{}: {}", todo.id, todo.status.value, todo.position, todo.title)
        return todo

    def list_all(self) -> list[Todo]:
        """All todos grouped by column in board order, then by position."""
        return self.store.list_ordered()

    def get(self, todo_id: int) -> Todo:
        todo = self.store.get(todo_id)
        if todo is None:
            raise NotFoundError(todo_id)
        return todo

    def move(self, todo_id: int, payload: Any) -> Todo:
        """Place a todo at ``(status, position)``, overwriting both fields."""
        data = parse_payload(TodoMove, payload)
        current = self.get(todo_id)
        self.workflow.check(current.status, data.status)
        todo = self.store.update_placement(todo_id, data.status, data.position, next_timestamp)
        if todo is None:
            # Deleted between the lookup and the update.
            raise NotFoundError(todo_id)
        logger.info(
            "Moved todo {} from {}@{} to {}@{}",
            todo_id,
            current.status.value,
            current.position,
            todo.status.value,
            todo.position,
        )
        return todo

    def delete(self, todo_id: int) -> Todo:
        """Permanently remove a todo and return its last state."""
        todo = self.store.delete(todo_id)
        if todo is None:
            raise NotFoundError(todo_id)
        logger.info("Deleted todo {}: {}", todo.id, todo.title)
        return todo

    # ------------------------------------------------------------------
    # Board helpers
    # ------------------------------------------------------------------

    def board(self) -> dict[str, list[Todo]]:
        """Return the ordered todos keyed by column, every column present."""
        columns: dict[str, list[Todo]] = {status.value: [] for status in TodoStatus}
        for todo in self.list_all():
            columns[todo.status.value].append(todo)
        return columns

    def resequence(self, status: Any) -> list[Todo]:
        """Compact one column's positions to ``0..n-1`` in current order."""
        try:
            column = TodoStatus.parse(status)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        todos = self.store.renumber(column, next_timestamp)
        logger.info("Resequenced column {} ({} todos)", column.value, len(todos))
        return todos
