"""HTTP client for the todo board API.

Mirrors the calls the board frontend makes, unwrapping the response envelope
and returning :class:`Todo` snapshots.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from .task_engine.model import Todo, TodoStatus

DEFAULT_BASE_URL = "http://localhost:3000/api"


class TodoClientError(Exception):
    """The server answered with ``success: false`` or a non-JSON error."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class TodoClient:
    """Thin synchronous wrapper around ``/todo`` endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._http = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def __enter__(self) -> "TodoClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        resp = self._http.request(method, path, json=json)
        try:
            body = resp.json()
        except ValueError:
            raise TodoClientError(resp.status_code, resp.text or resp.reason_phrase) from None
        if not isinstance(body, dict) or not body.get("success", False) or resp.is_error:
            data = body.get("data") if isinstance(body, dict) else body
            raise TodoClientError(resp.status_code, str(data))
        return body.get("data")

    def get_todos(self) -> list[Todo]:
        return [Todo.from_dict(item) for item in self._request("GET", "/todo")]

    def add_todo(
        self,
        title: str,
        description: Optional[str] = None,
        status: Optional[str | TodoStatus] = None,
        position: Optional[int] = None,
    ) -> Todo:
        payload: dict[str, Any] = {"title": title}
        if description is not None:
            payload["description"] = description
        if status is not None:
            payload["status"] = TodoStatus.parse(status).value
        if position is not None:
            payload["position"] = position
        return Todo.from_dict(self._request("POST", "/todo", json=payload))

    def move_todo(self, todo_id: int, status: str | TodoStatus, position: int) -> Todo:
        payload = {"status": TodoStatus.parse(status).value, "position": position}
        return Todo.from_dict(self._request("PATCH", f"/todo/{todo_id}/move", json=payload))

    def delete_todo(self, todo_id: int) -> Todo:
        return Todo.from_dict(self._request("DELETE", f"/todo/{todo_id}"))
