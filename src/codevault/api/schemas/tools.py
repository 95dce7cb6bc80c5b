"""Tool-call API schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ToolCallRequest(BaseModel):
    """One tool invocation from the generator."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
