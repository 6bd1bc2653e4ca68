"""FastAPI web server for the todo board."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import TodoBoardConfig
from ..task_engine.engine import StatusWorkflow, TodoEngine
from ..task_engine.errors import TodoError
from ..task_engine.store import TodoStore
from .models import HealthInfo, envelope
from .todo_api import create_todo_router


def build_engine(config: TodoBoardConfig) -> TodoEngine:
    """Open the configured database and wrap it in an engine."""
    store = TodoStore(config.database)
    return TodoEngine(store, StatusWorkflow(config.transitions))


def _format_request_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def create_app(
    config: Optional[TodoBoardConfig] = None,
    engine: Optional[TodoEngine] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Server configuration; defaults are used when omitted.
        engine: Pre-built engine. When omitted one is opened from
            ``config.database`` and closed again on shutdown.

    Returns:
        Configured FastAPI app.
    """
    config = config or TodoBoardConfig()
    owns_engine = engine is None
    if engine is None:
        engine = build_engine(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Todo board serving {} at prefix '{}'", engine.store.db_path, config.api_prefix)
        yield
        if owns_engine:
            engine.store.close()

    app = FastAPI(
        title="Todo Board",
        description="Kanban todo board backend",
        version=__version__,
        lifespan=lifespan,
    )

    if config.enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.engine = engine
    app.state.config = config

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @app.exception_handler(TodoError)
    async def todo_error_handler(request: Request, exc: TodoError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("{} {} failed: {}", request.method, request.url.path, exc.message)
        else:
            logger.warning("{} {} rejected: {}", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=envelope(exc.message, success=False))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _format_request_errors(exc)
        logger.warning("{} {} rejected: {}", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content=envelope(message, success=False))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=envelope(str(exc.detail), success=False))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("{} {} crashed: {}", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content=envelope("Internal server error", success=False))

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    @app.get("/", response_model=HealthInfo)
    async def root() -> HealthInfo:
        """Root endpoint."""
        return HealthInfo(name="Todo Board", version=__version__, status="running")

    app.include_router(create_todo_router(lambda: app.state.engine, prefix=config.api_prefix))

    return app
