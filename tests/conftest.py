from __future__ import annotations

import sys

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def _reset_log_sink():
    """Point loguru back at the live stderr after tests that reconfigure it.

    ``configure_logging`` binds the stream object it sees at call time, which
    under ``capsys`` is a capture buffer closed at teardown.
    """
    yield
    logger.remove()
    logger.add(lambda message: sys.stderr.write(message), level="INFO")
