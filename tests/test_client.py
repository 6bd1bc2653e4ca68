"""Tests for the HTTP client (client.py)."""

from __future__ import annotations

import json

import httpx
import pytest

from todo_board.client import TodoClient, TodoClientError
from todo_board.task_engine.model import TodoStatus

STAMP = "2026-01-06T10:07:00+00:00"


def _todo(todo_id: int, title: str, status: str = "TODO", position: int = 0) -> dict:
    return {
        "id": todo_id,
        "title": title,
        "description": None,
        "status": status,
        "position": position,
        "createdAt": STAMP,
        "updatedAt": STAMP,
    }


def _ok(data, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json={"success": True, "data": data, "timestamp": STAMP})


def _fail(message: str, status_code: int) -> httpx.Response:
    return httpx.Response(status_code, json={"success": False, "data": message, "timestamp": STAMP})


@pytest.fixture
def seen() -> list[httpx.Request]:
    return []


def _client(seen: list[httpx.Request], handler) -> TodoClient:
    def record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return TodoClient("http://board.test/api", transport=httpx.MockTransport(record))


def test_get_todos(seen) -> None:
    with _client(seen, lambda r: _ok([_todo(1, "a"), _todo(2, "b", "DONE", 4)])) as client:
        todos = client.get_todos()

    assert [t.id for t in todos] == [1, 2]
    assert todos[1].status == TodoStatus.DONE
    assert todos[1].position == 4
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/todo"


def test_add_todo_sends_only_given_fields(seen) -> None:
    with _client(seen, lambda r: _ok(_todo(1, "Write docs"), 201)) as client:
        todo = client.add_todo("Write docs")
        client.add_todo("Review", status="InProgress", position=1)

    assert todo.title == "Write docs"
    assert json.loads(seen[0].content) == {"title": "Write docs"}
    assert json.loads(seen[1].content) == {"title": "Review", "status": "IN_PROGRESS", "position": 1}


def test_move_todo(seen) -> None:
    with _client(seen, lambda r: _ok(_todo(3, "card", "DONE", 2))) as client:
        todo = client.move_todo(3, TodoStatus.DONE, 2)

    assert todo.status == TodoStatus.DONE
    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/todo/3/move"
    assert json.loads(seen[0].content) == {"status": "DONE", "position": 2}


def test_delete_todo(seen) -> None:
    with _client(seen, lambda r: _ok(_todo(3, "card"))) as client:
        assert client.delete_todo(3).id == 3
    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/api/todo/3"


def test_error_envelope_raises(seen) -> None:
    with _client(seen, lambda r: _fail("Todo 9 not found", 404)) as client:
        with pytest.raises(TodoClientError) as info:
            client.delete_todo(9)
    assert info.value.status_code == 404
    assert info.value.message == "Todo 9 not found"


def test_non_json_error_raises(seen) -> None:
    with _client(seen, lambda r: httpx.Response(502, text="bad gateway")) as client:
        with pytest.raises(TodoClientError) as info:
            client.get_todos()
    assert info.value.status_code == 502
    assert "bad gateway" in info.value.message
