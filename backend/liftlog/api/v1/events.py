"""API status console: diagnostic events newest first, optional status filter, clear."""

from typing import Annotated

from fastapi import APIRouter, Depends

from liftlog.api.deps import get_event_log
from liftlog.schemas.events import EventStatus
from liftlog.services.api_events import ApiEventLog

router = APIRouter(prefix="/events", tags=["events"])


@router.get("")
async def list_events(
    log: Annotated[ApiEventLog, Depends(get_event_log)],
    status: EventStatus | None = None,
) -> list[dict]:
    return [e.model_dump(mode="json", exclude_none=True) for e in log.filter(status)]


@router.delete("", status_code=204)
async def clear_events(log: Annotated[ApiEventLog, Depends(get_event_log)]) -> None:
    log.reset()
