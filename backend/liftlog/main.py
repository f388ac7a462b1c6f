import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import make_asgi_app

from liftlog.api.v1 import events, sheets, workouts

# Ensure app loggers (Sheets client, sync, etc.) print to stdout so you see them in the terminal
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("liftlog").setLevel(logging.DEBUG)
from liftlog.config import settings
from liftlog.services.api_events import ApiEventLog
from liftlog.services.http_client import close_http_client, init_http_client
from liftlog.services.local_store import JsonFileStore, LocalStore, MemoryStore
from liftlog.services.sheets_settings import load_config
from liftlog.services.token_store import TokenStore
from liftlog.services.workout_sync import WorkoutLogSynchronizer

logger = logging.getLogger(__name__)


def build_synchronizer(store: LocalStore) -> WorkoutLogSynchronizer:
    """Wire event log, token cache and saved config around one local store."""
    return WorkoutLogSynchronizer(
        events=ApiEventLog(store, max_events=settings.max_api_events),
        store=store,
        tokens=TokenStore(store),
        config=load_config(store),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.uses_memory_store:
        logger.warning("STORAGE_DIR is empty: workout logs are kept in memory only")
        store: LocalStore = MemoryStore()
    else:
        store = JsonFileStore(settings.storage_dir)
    app.state.sync = build_synchronizer(store)
    init_http_client(timeout=settings.sheets_timeout_seconds)
    yield
    await close_http_client()


app = FastAPI(
    title="LiftLog API",
    description="Workout log with Google Sheets sync and local fallback",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(GZipMiddleware, minimum_size=500)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()] if settings.cors_origins else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(workouts.router, prefix="/api/v1")
app.include_router(events.router, prefix="/api/v1")
app.include_router(sheets.router, prefix="/api/v1")

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
def health():
    return {"status": "ok"}
