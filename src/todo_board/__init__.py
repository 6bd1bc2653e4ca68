"""Provide the public `todo_board` package exports."""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = ["__version__"]
