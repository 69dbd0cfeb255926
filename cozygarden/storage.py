"""Snapshot persistence for the Cozy Garden core.

Every subsystem saves a JSON-serializable snapshot under its own key. A store
is a plain string-keyed map of JSON text; `FileStore` keeps the whole map in
one JSON file next to the host application.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .constants import CURRENT_SCHEMA_VERSION, STATE_FILENAME

logger = logging.getLogger(__name__)

UTC = timezone.utc


def utc_now() -> datetime:
    """Return the current UTC time."""

    return datetime.now(UTC)


def to_iso(dt: datetime) -> str:
    """Convert a datetime to an ISO 8601 string."""

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


class SnapshotStore:
    """Synchronous key -> JSON string map."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # JSON helpers
    # ------------------------------------------------------------------
    def save_json(self, key: str, data: Dict[str, Any]) -> None:
        """Serialize `data` and store it under `key`."""

        self.set(key, json.dumps(data, sort_keys=True))

    def load_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the dict stored under `key`.

        Missing keys, malformed JSON and non-dict payloads all yield None.
        """

        text = self.get(key)
        if text is None:
            return None
        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed snapshot for %s", key)
            return None
        if not isinstance(data, dict):
            logger.warning("Discarding non-object snapshot for %s", key)
            return None
        return data


class MemoryStore(SnapshotStore):
    """In-memory store; handy for tests and headless runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return self._data.keys()


class FileStore(SnapshotStore):
    """Keeps every key in a single JSON file inside `base_dir`."""

    def __init__(self, base_dir: str, filename: str = STATE_FILENAME) -> None:
        self.base_dir = base_dir
        self.filename = filename
        self._data: Dict[str, str] = {}
        self._load()

    @property
    def path(self) -> str:
        """Return the path to the JSON state file."""

        return os.path.join(self.base_dir, self.filename)

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except (OSError, ValueError):
            # If the file is corrupt, fall back to an empty store.
            logger.warning("Could not read %s; starting with an empty store", self.path)
            return
        if not isinstance(loaded, dict):
            logger.warning("Ignoring unexpected content in %s", self.path)
            return
        self._data = {k: v for k, v in loaded.items() if isinstance(k, str) and isinstance(v, str)}

    def _safe_write(self, text: str) -> None:
        """Safely write text to the state file using a temporary file."""

        target = self.path
        tmp = target + ".tmp"
        os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, target)

    def _save(self) -> None:
        self._safe_write(json.dumps(self._data, indent=2, sort_keys=True))

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._save()

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()


def check_schema(data: Dict[str, Any]) -> bool:
    """Return True if a snapshot can be loaded by this version.

    Snapshots without a version are treated as version 1 (the first format).
    Anything newer than we understand is rejected.
    """

    try:
        version = int(data.get("schema_version", CURRENT_SCHEMA_VERSION))
    except (TypeError, ValueError):
        return False
    if version < 1 or version > CURRENT_SCHEMA_VERSION:
        return False
    # Future migrations go here, one step per version.
    return True
