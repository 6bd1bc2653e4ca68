"""Tests for configuration loading (config.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from todo_board.config import (
    DEFAULT_PORT,
    ConfigError,
    TodoBoardConfig,
    config_from_mapping,
    load_config,
)


def test_defaults_without_file() -> None:
    cfg = load_config(None, environ={})
    assert cfg == TodoBoardConfig()
    assert cfg.port == DEFAULT_PORT
    assert cfg.api_prefix == "/api"
    assert cfg.transitions is None


def test_missing_file_is_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "absent.yaml", environ={}) == TodoBoardConfig()


def test_yaml_file(tmp_path: Path) -> None:
    path = tmp_path / "board.yaml"
    path.write_text(
        "database: /tmp/board.sqlite3\n"
        "port: 8080\n"
        "api_prefix: v1/\n"
        "enable_cors: false\n"
        "log_level: debug\n"
        "workflow:\n"
        "  transitions:\n"
        "    Todo: [InProgress]\n"
        "    IN_PROGRESS: [DONE, TODO]\n"
        "    DONE: []\n",
        encoding="utf-8",
    )
    cfg = load_config(path, environ={})
    assert cfg.database == "/tmp/board.sqlite3"
    assert cfg.port == 8080
    assert cfg.api_prefix == "/v1"
    assert cfg.enable_cors is False
    assert cfg.log_level == "DEBUG"
    assert cfg.transitions == {
        "TODO": ["IN_PROGRESS"],
        "IN_PROGRESS": ["DONE", "TODO"],
        "DONE": [],
    }


def test_env_overrides(tmp_path: Path) -> None:
    path = tmp_path / "board.yaml"
    path.write_text("port: 8080\n", encoding="utf-8")
    cfg = load_config(path, environ={"PORT": "9000", "TODO_BOARD_DB": "env.sqlite3", "TODO_BOARD_LOG_LEVEL": "warning"})
    assert cfg.port == 9000
    assert cfg.database == "env.sqlite3"
    assert cfg.log_level == "WARNING"


def test_specific_port_wins_over_generic() -> None:
    cfg = load_config(None, environ={"PORT": "9000", "TODO_BOARD_PORT": "9100"})
    assert cfg.port == 9100


@pytest.mark.parametrize(
    "content, message",
    [
        ("- just\n- a list\n", "expected object"),
        ("port: [unclosed\n", "YAMLError"),
        ("port: abc\n", "port must be an integer"),
        ("port: 70000\n", "out of range"),
        ("log_level: chatty\n", "unknown log level"),
        ("enable_cors: \"false\"\n", "enable_cors must be true or false"),
        ("enable_cors: 0\n", "enable_cors must be true or false"),
        ("workflow:\n  transitions: [TODO]\n", "must be a mapping"),
        ("workflow:\n  transitions:\n    TODO: DONE\n", "must be a list"),
        ("workflow:\n  transitions:\n    TODO: [ARCHIVED]\n", "ARCHIVED"),
    ],
)
def test_invalid_files(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "board.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError, match=message):
        load_config(path, environ={})


def test_empty_prefix() -> None:
    assert config_from_mapping({"api_prefix": ""}).api_prefix == ""
    assert config_from_mapping({"api_prefix": "/"}).api_prefix == ""
