"""
Workout log persistence: best-effort Google Sheets write/read with the local store as
guaranteed fallback. Every step is narrated to the ApiEventLog.

Each stage returns Succeeded(data) or Failed(reason); the public operations match on
those outcomes to decide whether to fall back. Public operations never raise.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from prometheus_client import Counter
from pydantic import ValidationError

from liftlog.schemas.events import EventStatus
from liftlog.schemas.sheets import SheetsConfig
from liftlog.schemas.workout import TimeRange, WorkoutLogEntry
from liftlog.services import sheets_client
from liftlog.services.api_events import ApiEventLog
from liftlog.services.local_store import WORKOUT_LOGS_KEY, LocalStore, write_json
from liftlog.services.progress import select_progress
from liftlog.services.sheet_rows import SHEET_HEADERS, flatten_entry, parse_rows
from liftlog.services.token_store import TokenStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_SHEETS = "GoogleSheets"
SOURCE_LOCAL = "LocalStorage"

TARGET_OAUTH = "remote-oauth"
TARGET_APIKEY = "remote-apikey"
TARGET_LOCAL = "local"

SYNC_ATTEMPTS = Counter(
    "liftlog_sync_attempts_total",
    "Workout log read/write attempts by backend and outcome",
    ["operation", "backend", "outcome"],
)


@dataclass(frozen=True)
class Succeeded(Generic[T]):
    data: T


@dataclass(frozen=True)
class Failed:
    reason: str


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _filter_group(entries: list[WorkoutLogEntry], muscle_group: str | None) -> list[WorkoutLogEntry]:
    if not muscle_group:
        return entries
    return [e for e in entries if e.muscle_group == muscle_group]


class WorkoutLogSynchronizer:
    def __init__(
        self,
        events: ApiEventLog,
        store: LocalStore,
        tokens: TokenStore,
        config: SheetsConfig | None = None,
    ):
        self.events = events
        self.store = store
        self.tokens = tokens
        self._config = config
        self._local_lock = asyncio.Lock()

    @property
    def config(self) -> SheetsConfig | None:
        return self._config

    def configure(self, config: SheetsConfig | None) -> None:
        self._config = config

    def resolve_target(self) -> tuple[str, str | None]:
        """Where reads go: OAuth (with token), API key (read-only) or local only."""
        if self._config is None:
            return TARGET_LOCAL, None
        token = self.tokens.current()
        if token:
            return TARGET_OAUTH, token
        if self._config.api_key:
            return TARGET_APIKEY, None
        return TARGET_LOCAL, None

    # -- stages ---------------------------------------------------------

    async def _append_remote(self, rows: list[list[str]], token: str) -> Succeeded[dict[str, Any]] | Failed:
        try:
            resp = await sheets_client.append_rows(self._config, token, rows)
        except Exception as e:
            logger.warning("Sheets append failed: %s", e)
            SYNC_ATTEMPTS.labels("logWorkout", "sheets", "error").inc()
            return Failed(_describe(e))
        SYNC_ATTEMPTS.labels("logWorkout", "sheets", "success").inc()
        return Succeeded(resp)

    async def _fetch_remote(self, token: str | None) -> Succeeded[list[WorkoutLogEntry]] | Failed:
        """Read the sheet and rebuild entries; Succeeded([]) when only the header (or nothing) is there."""
        try:
            values = await sheets_client.get_values(self._config, access_token=token)
            entries = parse_rows(values) if len(values) > 1 else []
        except Exception as e:
            logger.warning("Sheets read failed: %s", e)
            SYNC_ATTEMPTS.labels("getWorkoutHistory", "sheets", "error").inc()
            return Failed(_describe(e))
        SYNC_ATTEMPTS.labels("getWorkoutHistory", "sheets", "success").inc()
        return Succeeded(entries)

    def _load_local_raw(self) -> list[Any]:
        raw = self.store.get(WORKOUT_LOGS_KEY)
        if raw is None:
            return []
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("workout_logs is not a list")
        return data

    def _append_local_sync(self, entry: WorkoutLogEntry) -> int:
        logs = self._load_local_raw()
        logs.append(entry.to_json_dict())
        if not write_json(self.store, WORKOUT_LOGS_KEY, logs):
            raise OSError("local store rejected the write")
        return len(logs)

    def _read_local_sync(self) -> list[WorkoutLogEntry]:
        out: list[WorkoutLogEntry] = []
        for item in self._load_local_raw():
            try:
                out.append(WorkoutLogEntry.model_validate(item))
            except ValidationError:
                logger.warning("Skipping invalid local workout log entry")
        return out

    async def _append_local(self, entry: WorkoutLogEntry) -> Succeeded[int] | Failed:
        try:
            async with self._local_lock:
                total = await asyncio.to_thread(self._append_local_sync, entry)
        except Exception as e:
            logger.error("Error storing workout locally: %s", e)
            SYNC_ATTEMPTS.labels("logWorkout", "local", "error").inc()
            return Failed(_describe(e))
        SYNC_ATTEMPTS.labels("logWorkout", "local", "success").inc()
        return Succeeded(total)

    async def _read_local(self) -> Succeeded[list[WorkoutLogEntry]] | Failed:
        try:
            entries = await asyncio.to_thread(self._read_local_sync)
        except Exception as e:
            logger.error("Error reading local workout history: %s", e)
            SYNC_ATTEMPTS.labels("getWorkoutHistory", "local", "error").inc()
            return Failed(_describe(e))
        SYNC_ATTEMPTS.labels("getWorkoutHistory", "local", "success").inc()
        return Succeeded(entries)

    # -- operations -----------------------------------------------------

    async def log_workout(self, entry: WorkoutLogEntry, difficulty: str | None = None) -> bool:
        """
        Append the entry to the sheet when signed in, then always to the local store.
        Returns True if at least one backend kept the entry.
        """
        meta = {"exerciseId": entry.exercise_id, "date": entry.date, "sets": len(entry.sets)}
        self.events.record(
            EventStatus.info,
            SOURCE_SHEETS,
            "logWorkout",
            f"Logging {entry.exercise_name} ({len(entry.sets)} sets)",
            meta,
        )
        rows = flatten_entry(entry, difficulty)
        remote_ok = False

        token = self.tokens.current() if self._config is not None else None
        if token:
            match await self._append_remote(rows, token):
                case Succeeded(data=resp):
                    remote_ok = True
                    updates = resp.get("updates") if isinstance(resp, dict) else None
                    self.events.record(
                        EventStatus.success,
                        SOURCE_SHEETS,
                        "logWorkout",
                        f"Appended {len(rows)} rows to {self._config.sheet_name}",
                        {"rows": len(rows), "updatedRange": (updates or {}).get("updatedRange")},
                    )
                case Failed(reason=reason):
                    self.events.record(
                        EventStatus.error,
                        SOURCE_SHEETS,
                        "logWorkout",
                        f"Remote append failed: {reason}. Falling back to local storage",
                        {"rows": len(rows)},
                    )
        else:
            self.events.record(
                EventStatus.info,
                SOURCE_SHEETS,
                "logWorkout",
                "Remote write skipped: no valid OAuth token (read-only or not configured)",
            )

        match await self._append_local(entry):
            case Succeeded(data=total):
                self.events.record(
                    EventStatus.success,
                    SOURCE_LOCAL,
                    "logWorkout",
                    f"Workout saved locally ({total} entries stored)",
                    {"total": total},
                )
                return True
            case Failed(reason=reason):
                self.events.record(
                    EventStatus.error,
                    SOURCE_LOCAL,
                    "logWorkout",
                    f"Local save failed: {reason}",
                )
        return remote_ok

    async def get_workout_history(self, muscle_group: str | None = None) -> list[WorkoutLogEntry]:
        """Entries from the sheet when reachable and non-empty, else from the local store. Never raises."""
        target, token = self.resolve_target()
        self.events.record(
            EventStatus.info,
            SOURCE_SHEETS if target != TARGET_LOCAL else SOURCE_LOCAL,
            "getWorkoutHistory",
            f"Reading workout history from {target}",
            {"target": target, "muscleGroup": muscle_group},
        )

        if target != TARGET_LOCAL:
            match await self._fetch_remote(token):
                case Succeeded(data=entries) if entries:
                    result = _filter_group(entries, muscle_group)
                    self.events.record(
                        EventStatus.success,
                        SOURCE_SHEETS,
                        "getWorkoutHistory",
                        f"Loaded {len(result)} of {len(entries)} entries from sheet",
                        {"total": len(entries), "returned": len(result), "target": target},
                    )
                    return result
                case Succeeded():
                    self.events.record(
                        EventStatus.info,
                        SOURCE_SHEETS,
                        "getWorkoutHistory",
                        "Sheet has no workout rows. Falling back to local storage",
                    )
                case Failed(reason=reason):
                    self.events.record(
                        EventStatus.error,
                        SOURCE_SHEETS,
                        "getWorkoutHistory",
                        f"Error reading from Google Sheets: {reason}. Falling back to local storage",
                    )

        return await self._history_from_local(muscle_group)

    async def _history_from_local(self, muscle_group: str | None) -> list[WorkoutLogEntry]:
        match await self._read_local():
            case Succeeded(data=entries):
                result = _filter_group(entries, muscle_group)
                self.events.record(
                    EventStatus.success,
                    SOURCE_LOCAL,
                    "getWorkoutHistory",
                    f"Loaded {len(result)} of {len(entries)} entries from local storage",
                    {"total": len(entries), "returned": len(result)},
                )
                return result
            case Failed(reason=reason):
                self.events.record(
                    EventStatus.error,
                    SOURCE_LOCAL,
                    "getWorkoutHistory",
                    f"Error reading local workout history: {reason}",
                )
        return []

    async def get_progress_data(
        self,
        exercise_id: str,
        time_range: TimeRange,
        now: datetime | None = None,
    ) -> list[WorkoutLogEntry]:
        """One exercise's entries inside the time range, oldest first."""
        entries = await self.get_workout_history()
        return select_progress(entries, exercise_id, time_range, now)

    async def check_sheet(self) -> Succeeded[dict[str, Any]] | Failed:
        """Verify the spreadsheet is reachable, the tab exists and row 1 holds the expected headers."""
        if self._config is None:
            return Failed("Google Sheets is not configured")
        token = self.tokens.current()
        name = self._config.sheet_name
        self.events.record(EventStatus.info, SOURCE_SHEETS, "checkSheet", f"Checking access to sheet {name}")
        try:
            metadata = await sheets_client.get_spreadsheet(self._config, access_token=token)
        except Exception as e:
            logger.warning("Sheets metadata request failed: %s", e)
            reason = "Failed to access spreadsheet. Please check your API key and spreadsheet ID."
            self.events.record(EventStatus.error, SOURCE_SHEETS, "checkSheet", reason, {"error": _describe(e)})
            return Failed(reason)
        if name not in sheets_client.sheet_titles(metadata):
            reason = f'Sheet "{name}" not found. Please create it manually in the spreadsheet.'
            self.events.record(EventStatus.error, SOURCE_SHEETS, "checkSheet", reason)
            return Failed(reason)
        try:
            header_rows = await sheets_client.get_values(self._config, access_token=token, cells="A1:H1")
        except Exception as e:
            reason = f"Error checking headers: {_describe(e)}"
            self.events.record(EventStatus.error, SOURCE_SHEETS, "checkSheet", reason)
            return Failed(reason)
        header = [str(c).strip() for c in header_rows[0]] if header_rows else []
        headers_ok = header[: len(SHEET_HEADERS)] == SHEET_HEADERS
        if headers_ok:
            self.events.record(EventStatus.success, SOURCE_SHEETS, "checkSheet", f"Sheet {name} is ready")
        else:
            self.events.record(
                EventStatus.info,
                SOURCE_SHEETS,
                "checkSheet",
                "Please add the expected headers to row 1",
                {"expected": SHEET_HEADERS, "found": header},
            )
        return Succeeded({
            "sheetExists": True,
            "headersOk": headers_ok,
            "expectedHeaders": SHEET_HEADERS,
            "foundHeaders": header,
            "writable": token is not None,
        })
