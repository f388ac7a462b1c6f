"""FastAPI dependencies: per-app services kept on app.state by the lifespan."""

from fastapi import Request

from liftlog.services.api_events import ApiEventLog
from liftlog.services.local_store import LocalStore
from liftlog.services.token_store import TokenStore
from liftlog.services.workout_sync import WorkoutLogSynchronizer


async def get_synchronizer(request: Request) -> WorkoutLogSynchronizer:
    return request.app.state.sync


async def get_event_log(request: Request) -> ApiEventLog:
    return request.app.state.sync.events


async def get_token_store(request: Request) -> TokenStore:
    return request.app.state.sync.tokens


async def get_local_store(request: Request) -> LocalStore:
    return request.app.state.sync.store
