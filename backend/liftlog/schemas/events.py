"""Pydantic schemas for diagnostic (API status) events."""

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class EventStatus(str, enum.Enum):
    success = "success"
    error = "error"
    info = "info"


class DiagnosticEvent(BaseModel):
    """Trace record of one sync step. Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int  # epoch ms
    status: EventStatus
    source: str  # e.g. GoogleSheets, LocalStorage
    action: str  # e.g. getWorkoutHistory, logWorkout
    message: str
    meta: dict[str, Any] | None = None
