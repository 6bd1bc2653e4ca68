"""Load server configuration from an optional YAML file and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .task_engine.model import TodoStatus

DEFAULT_DB_FILENAME = "todo_board.sqlite3"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_API_PREFIX = "/api"
VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(ValueError):
    """Raised when the config file or an override cannot be used."""


@dataclass
class TodoBoardConfig:
    database: str = DEFAULT_DB_FILENAME
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_prefix: str = DEFAULT_API_PREFIX
    enable_cors: bool = True
    log_level: str = "INFO"
    # None keeps every status transition legal.
    transitions: Optional[dict[str, list[str]]] = None


def _load_data_with_error(path: Path) -> tuple[dict[str, Any], str | None]:
    """Load a YAML mapping and return ``(data, error_message)``."""
    if not path.exists():
        return {}, None
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        return {}, f"{path.name}: {exc.__class__.__name__}: {exc}"
    except yaml.YAMLError as exc:
        return {}, f"{path.name}: YAMLError: {exc}"
    if data is None:
        return {}, None
    if not isinstance(data, dict):
        return {}, f"{path.name}: expected object, got {type(data).__name__}"
    return data, None


def _get_nested(config: Mapping[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(key)
    return cur


def _as_port(raw: Any, source: str) -> int:
    try:
        port = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{source}: port must be an integer, got {raw!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"{source}: port out of range: {port}")
    return port


def _as_log_level(raw: Any, source: str) -> str:
    level = str(raw).strip().upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigError(f"{source}: unknown log level {raw!r}")
    return level


def _as_bool(raw: Any, key: str, source: str) -> bool:
    if not isinstance(raw, bool):
        raise ConfigError(f"{source}: {key} must be true or false, got {raw!r}")
    return raw


def _normalize_prefix(raw: Any) -> str:
    prefix = str(raw or "").strip().strip("/")
    return f"/{prefix}" if prefix else ""


def config_from_mapping(data: Mapping[str, Any], source: str = "config") -> TodoBoardConfig:
    """Build a config from a parsed mapping, validating each known key."""
    cfg = TodoBoardConfig()
    if "database" in data and data["database"]:
        cfg.database = str(data["database"])
    if "host" in data and data["host"]:
        cfg.host = str(data["host"])
    if "port" in data and data["port"] is not None:
        cfg.port = _as_port(data["port"], source)
    if "api_prefix" in data:
        cfg.api_prefix = _normalize_prefix(data["api_prefix"])
    if "enable_cors" in data:
        cfg.enable_cors = _as_bool(data["enable_cors"], "enable_cors", source)
    if "log_level" in data and data["log_level"]:
        cfg.log_level = _as_log_level(data["log_level"], source)

    transitions = _get_nested(data, "workflow", "transitions")
    if transitions is not None:
        if not isinstance(transitions, Mapping):
            raise ConfigError(f"{source}: workflow.transitions must be a mapping")
        cfg.transitions = {}
        for src, targets in transitions.items():
            if targets is not None and not isinstance(targets, list):
                raise ConfigError(f"{source}: workflow.transitions.{src} must be a list")
            try:
                cfg.transitions[TodoStatus.parse(src).value] = [TodoStatus.parse(t).value for t in targets or []]
            except ValueError as exc:
                raise ConfigError(f"{source}: workflow.transitions: {exc}") from None

    return cfg


def apply_env_overrides(cfg: TodoBoardConfig, environ: Optional[Mapping[str, str]] = None) -> TodoBoardConfig:
    """Override config values from ``TODO_BOARD_*`` and ``PORT`` variables."""
    env = os.environ if environ is None else environ
    if env.get("TODO_BOARD_DB"):
        cfg.database = env["TODO_BOARD_DB"]
    if env.get("TODO_BOARD_HOST"):
        cfg.host = env["TODO_BOARD_HOST"]
    port = env.get("TODO_BOARD_PORT") or env.get("PORT")
    if port:
        cfg.port = _as_port(port, "environment")
    if env.get("TODO_BOARD_LOG_LEVEL"):
        cfg.log_level = _as_log_level(env["TODO_BOARD_LOG_LEVEL"], "environment")
    return cfg


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TodoBoardConfig:
    """Load the optional config file, then apply environment overrides.

    Args:
        path: YAML config file. A missing file yields the defaults.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        The resolved configuration.

    Raises:
        ConfigError: If the file cannot be parsed or holds invalid values.
    """
    data: dict[str, Any] = {}
    source = "config"
    if path is not None:
        source = path.name
        data, err = _load_data_with_error(path)
        if err:
            raise ConfigError(err)
    return apply_env_overrides(config_from_mapping(data, source), environ)
