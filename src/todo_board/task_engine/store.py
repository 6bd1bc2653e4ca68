"""SQLite-backed todo store.

Stores todos in a single ``todo`` table.  Every public method runs in its own
transaction on its own connection, so concurrent requests are serialized by
SQLite rather than by in-process locks.  The ``":memory:"`` database keeps a
single shared connection instead, guarded by a lock, so tests can run the
store without touching disk.
"""

from __future__ import annotations

import contextlib
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from loguru import logger

from .errors import StorageError
from .model import Todo, TodoStatus, parse_timestamp

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MEMORY_DB = ":memory:"
CONNECT_TIMEOUT = 30.0  # seconds

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in TodoStatus)
_STATUS_RANK_SQL = "CASE status {} END".format(
    " ".join(f"WHEN '{s.value}' THEN {s.sort_key}" for s in TodoStatus)
)
_COLUMNS = "id, title, description, status, position, created_at, updated_at"

StampFn = Callable[[datetime], datetime]

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS todo (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'TODO' CHECK (status IN ({_STATUS_VALUES})),
    position INTEGER NOT NULL DEFAULT 0 CHECK (position >= 0),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


def _row_to_todo(row: sqlite3.Row) -> Todo:
    return Todo(
        id=int(row["id"]),
        title=str(row["title"]),
        description=row["description"],
        status=TodoStatus.parse(row["status"]),
        position=int(row["position"]),
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


# ---------------------------------------------------------------------------
# TodoStore
# ---------------------------------------------------------------------------

class TodoStore:
    """Relational persistence for :class:`Todo` rows.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file, or ``":memory:"``.
    """

    def __init__(self, db_path: Union[str, Path] = MEMORY_DB) -> None:
        self._db_path = str(db_path)
        self._shared: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        if self._db_path == MEMORY_DB:
            self._shared = self._open()
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("TodoStore ready db={} total={}", self._db_path, self.count())

    @property
    def db_path(self) -> str:
        return self._db_path

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
            self._shared = None

    # -- internal helpers ---------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path, timeout=CONNECT_TIMEOUT, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open database {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection and commit on success, roll back on failure."""
        if self._shared is not None:
            with self._lock:
                yield from self._run(self._shared, close=False)
        else:
            yield from self._run(self._open(), close=True)

    @staticmethod
    def _run(conn: sqlite3.Connection, *, close: bool) -> Iterator[sqlite3.Connection]:
        # sqlite3 raises OverflowError for integers outside the signed 64-bit range.
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, OverflowError) as exc:
            conn.rollback()
            logger.error("Database statement failed: {}", exc)
            raise StorageError(f"Database error: {exc}") from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            if close:
                conn.close()

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute(_SCHEMA)

            # Older databases predate the board columns; add them in place.
            cols = {row["name"] for row in conn.execute("PRAGMA table_info(todo)")}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                conn.execute(f"ALTER TABLE todo ADD COLUMN {name} {decl}")
                logger.info("TodoStore migration: added column {}", name)

            add_col("description", "TEXT")
            add_col("status", "TEXT NOT NULL DEFAULT 'TODO'")
            add_col("position", "INTEGER NOT NULL DEFAULT 0")

            conn.execute("CREATE INDEX IF NOT EXISTS idx_todo_status_position ON todo(status, position)")

    @staticmethod
    def _fetch(conn: sqlite3.Connection, todo_id: int) -> Optional[Todo]:
        row = conn.execute(f"SELECT {_COLUMNS} FROM todo WHERE id = ?", (todo_id,)).fetchone()
        return _row_to_todo(row) if row is not None else None

    # -- public API ---------------------------------------------------------

    def count(self) -> int:
        with self._transaction() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM todo").fetchone()
            return int(n)

    def insert(
        self,
        *,
        title: str,
        description: Optional[str],
        status: TodoStatus,
        position: int,
        now: datetime,
    ) -> Todo:
        stamp = now.isoformat()
        with self._transaction() as conn:
            cur = conn.execute(
                "INSERT INTO todo (title, description, status, position, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (title, description, status.value, position, stamp, stamp),
            )
            todo_id = int(cur.lastrowid)
        return Todo(
            id=todo_id,
            title=title,
            description=description,
            status=status,
            position=position,
            created_at=now,
            updated_at=now,
        )

    def get(self, todo_id: int) -> Optional[Todo]:
        with self._transaction() as conn:
            return self._fetch(conn, todo_id)

    def list_ordered(self, status: Optional[TodoStatus] = None) -> list[Todo]:
        """Return todos in board order: column rank, then position, then id."""
        query = f"SELECT {_COLUMNS} FROM todo"
        params: tuple[str, ...] = ()
        if status is not None:
            query += " WHERE status = ?"
            params = (status.value,)
        query += f" ORDER BY {_STATUS_RANK_SQL}, position ASC, id ASC"
        with self._transaction() as conn:
            return [_row_to_todo(row) for row in conn.execute(query, params).fetchall()]

    def update_placement(
        self,
        todo_id: int,
        status: TodoStatus,
        position: int,
        stamp_for: StampFn,
    ) -> Optional[Todo]:
        """Overwrite status and position of one row.

        *stamp_for* receives the row's current ``updated_at`` and returns the
        new one.  Returns ``None`` when the row does not exist.
        """
        with self._transaction() as conn:
            current = self._fetch(conn, todo_id)
            if current is None:
                return None
            updated_at = stamp_for(current.updated_at)
            conn.execute(
                "UPDATE todo SET status = ?, position = ?, updated_at = ? WHERE id = ?",
                (status.value, position, updated_at.isoformat(), todo_id),
            )
        current.status = status
        current.position = position
        current.updated_at = updated_at
        return current

    def delete(self, todo_id: int) -> Optional[Todo]:
        """Physically remove a row, returning its last state."""
        with self._transaction() as conn:
            current = self._fetch(conn, todo_id)
            if current is None:
                return None
            conn.execute("DELETE FROM todo WHERE id = ?", (todo_id,))
        return current

    def renumber(self, status: TodoStatus, stamp_for: StampFn) -> list[Todo]:
        """Rewrite positions in one column to ``0..n-1`` keeping current order."""
        with self._transaction() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM todo WHERE status = ? ORDER BY position ASC, id ASC",
                (status.value,),
            ).fetchall()
            todos = [_row_to_todo(row) for row in rows]
            for index, todo in enumerate(todos):
                if todo.position == index:
                    continue
                todo.position = index
                todo.updated_at = stamp_for(todo.updated_at)
                conn.execute(
                    "UPDATE todo SET position = ?, updated_at = ? WHERE id = ?",
                    (index, todo.updated_at.isoformat(), todo.id),
                )
        return todos


