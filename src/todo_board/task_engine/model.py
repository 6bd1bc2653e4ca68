"""Todo model for the kanban board.

A todo lives in exactly one status column and carries an integer position
that orders it relative to the other todos in that column.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TodoStatus(str, Enum):
    """Board-level status used for kanban columns.

    Declaration order is the column order on the board.
    """

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"

    @property
    def sort_key(self) -> int:
        return _STATUS_ORDER[self]

    @classmethod
    def parse(cls, raw: Any) -> "TodoStatus":
        """Coerce *raw* into a status.

        Accepts the wire values (``IN_PROGRESS``) as well as the spelled
        forms (``InProgress``, ``in-progress``), case-insensitively.
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            raise ValueError(f"status must be a string, got {type(raw).__name__}")
        key = raw.strip().replace("_", "").replace("-", "").replace(" ", "").upper()
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        raise ValueError(f"'status' must be one of {[m.value for m in cls]}, got '{raw}'")


_STATUS_ORDER = {status: index for index, status in enumerate(TodoStatus)}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Return the current time, strictly later than *previous*."""
    current = now_utc()
    if previous is not None and current <= previous:
        current = previous + timedelta(microseconds=1)
    return current


def parse_timestamp(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Todo dataclass
# ---------------------------------------------------------------------------

@dataclass
class Todo:
    """A single card on the board.

    Instances handed out by the store are snapshots; mutating one does not
    touch the persisted row.
    """

    id: int
    title: str
    description: Optional[str] = None
    status: TodoStatus = TodoStatus.TODO
    position: int = 0
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @property
    def order_key(self) -> tuple[int, int, int]:
        return (self.status.sort_key, self.position, self.id)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape used on the wire."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "position": self.position,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Todo":
        """Inverse of :meth:`to_dict`, used by the HTTP client."""
        return cls(
            id=int(data["id"]),
            title=str(data["title"]),
            description=data.get("description"),
            status=TodoStatus.parse(data.get("status", TodoStatus.TODO.value)),
            position=int(data.get("position", 0) or 0),
            created_at=parse_timestamp(str(data["createdAt"])),
            updated_at=parse_timestamp(str(data["updatedAt"])),
        )
