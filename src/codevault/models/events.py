"""Audit events recorded alongside history changes."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Event categories emitted by the history engine."""

    PROJECT_CREATED = "project.created"
    PROJECT_STATUS_CHANGED = "project.status_changed"
    COMMIT_CREATED = "commit.created"
    SESSION_PLACEHOLDER_CREATED = "session.placeholder_created"
    DEPLOYMENT_RECORDED = "deployment.recorded"


class HistoryEvent(BaseModel):
    """Append-only event written in the same transaction as its change."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    project_id: str | None = None
    event_type: EventType
    payload: dict[str, str | int | float | bool | None] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
