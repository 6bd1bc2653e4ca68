"""Pydantic models for API responses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    """Wrapper applied to every response, successful or not."""

    success: bool
    data: Any = None
    timestamp: str


class HealthInfo(BaseModel):
    name: str
    version: str
    status: str


def envelope(data: Any, success: bool = True) -> dict[str, Any]:
    return {
        "success": success,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
