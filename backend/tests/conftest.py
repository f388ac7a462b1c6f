"""Pytest configuration and shared fixtures: fresh store/event log/synchronizer per test, fake Sheets API."""

import json
import os

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Keep tests off the filesystem and away from any real spreadsheet configured in .env
os.environ["STORAGE_DIR"] = ""
os.environ["GOOGLE_SHEETS_API_KEY"] = ""
os.environ["GOOGLE_SHEETS_SPREADSHEET_ID"] = ""

from liftlog.main import app
from liftlog.schemas.sheets import SheetsConfig
from liftlog.services.api_events import ApiEventLog
from liftlog.services.http_client import close_http_client, init_http_client
from liftlog.services.local_store import MemoryStore
from liftlog.services.sheet_rows import SHEET_HEADERS
from liftlog.services.token_store import TokenStore
from liftlog.services.workout_sync import WorkoutLogSynchronizer


class FakeClock:
    """Settable epoch-ms clock."""

    def __init__(self, now_ms: int = 1_705_312_800_000):  # 2024-01-15T10:00:00Z
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


class FailingStore:
    """Store whose reads raise and writes are rejected (full disk, quota, ...)."""

    def get(self, key: str) -> str | None:
        raise OSError("disk unavailable")

    def set(self, key: str, value: str) -> bool:
        return False


class FakeSheetsApi:
    """In-memory Google Sheets values/metadata endpoints behind httpx.MockTransport."""

    def __init__(self):
        self.titles = ["WorkoutLogs"]
        self.values: list[list[str]] = [list(SHEET_HEADERS)]
        self.read_status: int | None = None
        self.append_status: int | None = None
        self.raise_on_request: Exception | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_on_request is not None:
            raise self.raise_on_request
        path = request.url.path
        if request.method == "POST" and path.endswith(":append"):
            if self.append_status:
                return httpx.Response(self.append_status, json={"error": {"message": "denied"}})
            rows = json.loads(request.content)["values"]
            start = len(self.values) + 1
            self.values.extend(rows)
            return httpx.Response(
                200,
                json={"updates": {"updatedRange": f"WorkoutLogs!A{start}:H{len(self.values)}", "updatedRows": len(rows)}},
            )
        if request.method == "GET" and "/values/" in path:
            if self.read_status:
                return httpx.Response(self.read_status, json={"error": {"message": "forbidden"}})
            values = self.values[:1] if path.endswith("A1:H1") else self.values
            return httpx.Response(200, json={"values": values} if values else {})
        if request.method == "GET":
            return httpx.Response(200, json={"sheets": [{"properties": {"title": t}} for t in self.titles]})
        return httpx.Response(405)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def event_log(store, clock) -> ApiEventLog:
    return ApiEventLog(store, clock=clock)


@pytest.fixture
def tokens(store, clock) -> TokenStore:
    return TokenStore(store, clock=clock)


@pytest.fixture
def sheets_config() -> SheetsConfig:
    return SheetsConfig(api_key="test-api-key", spreadsheet_id="sheet-123", sheet_name="WorkoutLogs")


@pytest.fixture
def sync(event_log, store, tokens) -> WorkoutLogSynchronizer:
    """Synchronizer with no Sheets config: local-only mode."""
    return WorkoutLogSynchronizer(event_log, store, tokens)


@pytest_asyncio.fixture
async def sheets_api():
    """Install a fake Sheets API as the shared HTTP client's transport."""
    api = FakeSheetsApi()
    await close_http_client()
    init_http_client(timeout=5.0, transport=httpx.MockTransport(api.handler))
    yield api
    await close_http_client()


@pytest_asyncio.fixture
async def client(sync):
    """Yield AsyncClient against the app with this test's synchronizer (lifespan is not run)."""
    app.state.sync = sync
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
