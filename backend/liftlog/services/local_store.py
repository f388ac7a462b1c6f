"""
Local durable key-value store: the guaranteed fallback for workout logs and
the home of diagnostic events and the cached OAuth token.
Values are strings (JSON-encoded by callers); writes are atomic per key.
"""
from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

WORKOUT_LOGS_KEY = "workout_logs"
API_EVENTS_KEY = "api_events"
ACCESS_TOKEN_KEY = "google_access_token"
TOKEN_EXPIRES_KEY = "google_token_expires"
SHEETS_CONFIG_KEY = "googleSheets_config"

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStore(Protocol):
    def get(self, key: str) -> str | None:
        """Return the stored value or None if absent. May raise OSError on read failure."""
        ...

    def set(self, key: str, value: str) -> bool:
        """Store value; return False (never raise) if it could not be written."""
        ...


class MemoryStore:
    """Dict-backed store. Used in tests and when no storage_dir is configured."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        if not isinstance(value, str):
            return False
        with self._lock:
            self._data[key] = value
        return True


class JsonFileStore:
    """One file per key under `directory`. Each write goes to a temp file and is moved into place."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            # Bytes that are not UTF-8 are as unreadable as a failed read
            raise OSError(f"{path.name} is not valid UTF-8: {e}") from e

    def set(self, key: str, value: str) -> bool:
        path = self._path(key)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.directory, prefix=f".{path.stem}.", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(value)
            os.replace(tmp_name, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Local store: failed to write key %s: %s", key, e)
            if tmp_name:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False


def read_json(store: LocalStore, key: str, default: Any) -> Any:
    """Decode the JSON value under key; return default when absent, unreadable or unparsable."""
    try:
        raw = store.get(key)
    except (OSError, ValueError) as e:
        logger.warning("Local store: failed to read key %s: %s", key, e)
        return default
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Local store: key %s holds invalid JSON, ignoring", key)
        return default


def write_json(store: LocalStore, key: str, payload: Any) -> bool:
    """Encode payload as JSON and store it. Returns False on serialization or write failure."""
    try:
        raw = json.dumps(payload)
    except (TypeError, ValueError) as e:
        logger.warning("Local store: cannot serialize value for key %s: %s", key, e)
        return False
    return store.set(key, raw)
