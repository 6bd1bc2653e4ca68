"""HTTP layer for the todo board."""

from .api import build_engine, create_app

__all__ = ["build_engine", "create_app"]
