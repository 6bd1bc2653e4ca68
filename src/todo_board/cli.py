from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from .config import VALID_LOG_LEVELS, ConfigError, TodoBoardConfig, load_config
from .logging_setup import configure_logging
from .server import build_engine, create_app
from .task_engine.engine import TodoEngine
from .task_engine.errors import TodoError
from .task_engine.model import TodoStatus


def _config(args: argparse.Namespace) -> TodoBoardConfig:
    cfg = load_config(Path(args.config).expanduser() if args.config else None)
    if args.db:
        cfg.database = args.db
    if args.log_level:
        cfg.log_level = args.log_level
    return cfg


def _engine(args: argparse.Namespace) -> TodoEngine:
    return build_engine(args.cfg)


def _emit(payload: Any) -> int:
    sys.stdout.write(json.dumps(payload, indent=2) + '\n')
    return 0


def _todo_create(args: argparse.Namespace) -> int:
    payload: dict[str, Any] = {'title': args.title}
    if args.description is not None:
        payload['description'] = args.description
    if args.status is not None:
        payload['status'] = args.status
    if args.position is not None:
        payload['position'] = args.position
    todo = _engine(args).create(payload)
    return _emit({'todo': todo.to_dict()})


def _todo_list(args: argparse.Namespace) -> int:
    engine = _engine(args)
    if args.board:
        columns = engine.board()
        return _emit({'board': {status: [t.to_dict() for t in todos] for status, todos in columns.items()}})
    return _emit({'todos': [t.to_dict() for t in engine.list_all()]})


def _todo_move(args: argparse.Namespace) -> int:
    todo = _engine(args).move(args.todo_id, {'status': args.status, 'position': args.position})
    return _emit({'todo': todo.to_dict()})


def _todo_delete(args: argparse.Namespace) -> int:
    todo = _engine(args).delete(args.todo_id)
    return _emit({'deleted': todo.to_dict()})


def _todo_resequence(args: argparse.Namespace) -> int:
    todos = _engine(args).resequence(args.status)
    return _emit({'todos': [t.to_dict() for t in todos]})


def _server(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        sys.stderr.write("Install server extras: pip install 'todo-board[server]'\n")
        return 1

    cfg: TodoBoardConfig = args.cfg
    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port
    app = create_app(cfg)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='todo-board', description='Kanban todo board backend')
    parser.add_argument('--config', default=None, help='YAML config file')
    parser.add_argument('--db', default=None, help='SQLite database path (overrides config)')
    parser.add_argument('--log-level', default=None, type=str.upper, choices=sorted(VALID_LOG_LEVELS),
                        help='Log level (overrides config)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    server = subparsers.add_parser('server', help='Start the web server')
    server.add_argument('--host', default=None)
    server.add_argument('--port', default=None, type=int)
    server.set_defaults(func=_server)

    status_help = 'Column: ' + ', '.join(s.value for s in TodoStatus)

    todo = subparsers.add_parser('todo', help='Manage todos')
    todo_sub = todo.add_subparsers(dest='todo_cmd', required=True)
    tcreate = todo_sub.add_parser('create', help='Create a todo')
    tcreate.add_argument('title')
    tcreate.add_argument('--description', default=None)
    tcreate.add_argument('--status', default=None, help=status_help)
    tcreate.add_argument('--position', default=None, type=int)
    tcreate.set_defaults(func=_todo_create)
    tlist = todo_sub.add_parser('list', help='List todos in board order')
    tlist.add_argument('--board', action='store_true', help='Group by column')
    tlist.set_defaults(func=_todo_list)
    tmove = todo_sub.add_parser('move', help='Move a todo to a column and position')
    tmove.add_argument('todo_id', type=int)
    tmove.add_argument('status', help=status_help)
    tmove.add_argument('position', type=int)
    tmove.set_defaults(func=_todo_move)
    tdelete = todo_sub.add_parser('delete', help='Delete a todo')
    tdelete.add_argument('todo_id', type=int)
    tdelete.set_defaults(func=_todo_delete)
    treseq = todo_sub.add_parser('resequence', help='Renumber one column to 0..n-1')
    treseq.add_argument('status', help=status_help)
    treseq.set_defaults(func=_todo_resequence)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        args.cfg = _config(args)
    except ConfigError as exc:
        sys.stderr.write(f"Invalid configuration: {exc}\n")
        return 1
    configure_logging(args.cfg.log_level)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except TodoError as exc:
        sys.stderr.write(exc.message + '\n')
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
