"""Strict input shapes for todo mutations.

Unknown keys are rejected rather than ignored, and constraints are checked
before any row is written.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from .errors import ValidationError
from .model import TodoStatus

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Positions are stored as 32-bit column integers.
MAX_POSITION = 2**31 - 1


class TodoCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: StrictStr
    description: Optional[StrictStr] = None
    status: TodoStatus = TodoStatus.TODO
    position: StrictInt = Field(default=0, ge=0, le=MAX_POSITION)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> TodoStatus:
        return TodoStatus.parse(value)


class TodoMove(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: TodoStatus
    position: StrictInt = Field(ge=0, le=MAX_POSITION)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> TodoStatus:
        return TodoStatus.parse(value)


def _format_errors(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        msg = str(err.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}")
    return "; ".join(parts)


def parse_payload(schema: type[SchemaT], payload: Any) -> SchemaT:
    """Validate *payload* against *schema*, raising :class:`ValidationError`."""
    if isinstance(payload, schema):
        return payload
    if not isinstance(payload, dict):
        raise ValidationError(f"Expected an object, got {type(payload).__name__}")
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(_format_errors(exc)) from exc
