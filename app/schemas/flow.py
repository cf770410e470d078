"""Uniform result shape returned by every multi-step flow."""

from __future__ import annotations
from typing import Any
from pydantic import BaseModel, Field


class FlowResult(BaseModel):
    success: bool
    error: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    # HTTP status the router should use; not part of the body.
    status_code: int = Field(default=200, exclude=True)
