from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from todo_board.cli import main


@pytest.fixture
def run(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    db = tmp_path / 'cli.sqlite3'

    def _run(*argv: str) -> tuple[int, dict]:
        rc = main(['--db', str(db), *argv])
        captured = capsys.readouterr()
        out = captured.out
        sys.stderr.write(captured.err)
        return rc, (json.loads(out) if out.strip() else {})

    return _run


def test_create_list_move_delete(run) -> None:
    rc, out = run('todo', 'create', 'Write docs')
    assert rc == 0
    assert out['todo']['id'] == 1
    assert out['todo']['status'] == 'TODO'

    rc, out = run('todo', 'create', 'Review', '--status', 'TODO', '--position', '1', '--description', 'PR')
    assert rc == 0
    assert out['todo']['description'] == 'PR'

    rc, out = run('todo', 'move', '1', 'IN_PROGRESS', '0')
    assert rc == 0
    assert out['todo']['status'] == 'IN_PROGRESS'

    rc, out = run('todo', 'list')
    assert rc == 0
    assert [t['id'] for t in out['todos']] == [2, 1]

    rc, out = run('todo', 'list', '--board')
    assert [t['id'] for t in out['board']['IN_PROGRESS']] == [1]

    rc, out = run('todo', 'delete', '2')
    assert rc == 0
    assert out['deleted']['title'] == 'Review'


def test_resequence(run) -> None:
    run('todo', 'create', 'a', '--position', '5')
    run('todo', 'create', 'b', '--position', '9')
    rc, out = run('todo', 'resequence', 'TODO')
    assert rc == 0
    assert [t['position'] for t in out['todos']] == [0, 1]


def test_errors_exit_nonzero(run, capsys: pytest.CaptureFixture[str]) -> None:
    rc, _ = run('todo', 'delete', '41')
    assert rc == 1

    rc, _ = run('todo', 'create', '   ')
    assert rc == 1


def test_invalid_config_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = tmp_path / 'board.yaml'
    cfg.write_text('port: nope\n', encoding='utf-8')
    rc = main(['--config', str(cfg), 'todo', 'list'])
    assert rc == 1
    assert 'Invalid configuration' in capsys.readouterr().err


def test_config_workflow_applies(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cfg = tmp_path / 'board.yaml'
    cfg.write_text(f"database: {tmp_path / 'wf.sqlite3'}\nworkflow:\n  transitions:\n    TODO: [IN_PROGRESS]\n",
                   encoding='utf-8')
    assert main(['--config', str(cfg), 'todo', 'create', 'card']) == 0
    capsys.readouterr()
    assert main(['--config', str(cfg), 'todo', 'move', '1', 'DONE', '0']) == 1
    assert 'not allowed' in capsys.readouterr().err


def test_spelled_status_names(run) -> None:
    rc, out = run('todo', 'create', 'card', '--status', 'InProgress')
    assert rc == 0
    assert out['todo']['status'] == 'IN_PROGRESS'

    rc, out = run('todo', 'move', '1', 'Done', '2')
    assert rc == 0
    assert out['todo']['status'] == 'DONE'

    rc, out = run('todo', 'resequence', 'done')
    assert rc == 0
    assert [t['position'] for t in out['todos']] == [0]


def test_unknown_status_is_rejected(run, capsys: pytest.CaptureFixture[str]) -> None:
    rc, _ = run('todo', 'create', 'card', '--status', 'BLOCKED')
    assert rc == 1
    assert 'status' in capsys.readouterr().err

    rc, _ = run('todo', 'resequence', 'LATER')
    assert rc == 1
