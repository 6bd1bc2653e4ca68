"""Task engine for the kanban todo board.

This package provides the todo model, strict input schemas, the SQLite-backed
store, and the engine that owns status/position assignment.
"""
