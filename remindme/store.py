# File: store.py
"""Handles persistent data storage for RemindMe.

Local-first JSON document holding reminder definitions, the history ledger
and user settings. One document per signed-in user; guests share a single
"guest" document.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
from typing import Any

from . import const
from .utils.dt_utils import dt_now_local, dt_to_iso


class ReminderStore:
    """Handles persistent storage operations for RemindMe data.

    Thin wrapper around a JSON file for loading, saving, and accessing the
    in-memory document. A store without a path keeps data in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        """Initialize the store.

        Args:
            path: JSON file backing the store, or None for an in-memory store.
        """
        self._path: Path | None = Path(path) if path is not None else None
        self._data: dict[str, Any] = ReminderStore.get_default_structure()

    @classmethod
    def for_user(cls, directory: str | Path, user_id: str | None = None) -> ReminderStore:
        """Create a store for a user's document inside `directory`.

        Example:
            ReminderStore.for_user("/data", "abc123").path
            → /data/remindme_buddy_db_abc123.json
        """
        suffix = user_id or const.STORAGE_KEY_GUEST_SUFFIX
        return cls(Path(directory) / f"{const.STORAGE_KEY}_{suffix}.json")

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations.

        This is the SINGLE SOURCE OF TRUTH for the RemindMe storage schema.
        """
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
                const.DATA_META_LAST_SAVED: None,
            },
            const.DATA_REMINDERS: [],
            const.DATA_HISTORY: [],
            const.DATA_SETTINGS: {},
        }

    @property
    def path(self) -> Path | None:
        """Return the backing file path (None for in-memory stores)."""
        return self._path

    def load(self) -> None:
        """Load data from the backing file.

        A missing file starts from the default structure. An unreadable or
        corrupt file is logged and also starts from the default structure.
        """
        if self._path is None or not self._path.exists():
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = ReminderStore.get_default_structure()
            return

        const.LOGGER.debug("DEBUG: ReminderStore: Loading data from %s", self._path)
        try:
            with self._path.open(encoding="utf-8") as handle:
                existing_data = json.load(handle)
        except (OSError, json.JSONDecodeError) as err:
            const.LOGGER.error(
                "ERROR: Failed to load storage %s, starting empty: %s", self._path, err
            )
            self._data = ReminderStore.get_default_structure()
            return

        if not isinstance(existing_data, dict):
            const.LOGGER.error(
                "ERROR: Storage %s is not a JSON object, starting empty", self._path
            )
            self._data = ReminderStore.get_default_structure()
            return

        self._data = self._with_missing_buckets(existing_data)
        const.LOGGER.debug(
            "DEBUG: Loaded existing data from storage: %s",
            self._summary(self._data),
        )

    @staticmethod
    def _with_missing_buckets(data: dict[str, Any]) -> dict[str, Any]:
        """Fill buckets absent from older or partial documents."""
        default = ReminderStore.get_default_structure()
        for key, value in default.items():
            if not isinstance(data.get(key), type(value)):
                data[key] = value
        return data

    @staticmethod
    def _summary(data: dict[str, Any]) -> dict[str, int]:
        return {
            "reminders": len(data.get(const.DATA_REMINDERS, [])),
            "history": len(data.get(const.DATA_HISTORY, [])),
            "total_keys": len(data.keys()),
        }

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    @property
    def reminders(self) -> list[dict[str, Any]]:
        """Reminder definitions bucket."""
        return self._data[const.DATA_REMINDERS]

    @property
    def history(self) -> list[dict[str, Any]]:
        """History ledger bucket."""
        return self._data[const.DATA_HISTORY]

    @property
    def settings(self) -> dict[str, Any]:
        """User settings bucket."""
        return self._data[const.DATA_SETTINGS]

    def set_data(self, new_data: dict[str, Any]) -> None:
        """Replace the entire in-memory data structure."""
        const.LOGGER.debug(
            "DEBUG: ReminderStore set_data called with: %s", self._summary(new_data)
        )
        self._data = self._with_missing_buckets(new_data)

    def save(self) -> None:
        """Write the in-memory document to the backing file.

        The file is replaced atomically so a crash never leaves half a document.
        """
        self._data[const.DATA_META][const.DATA_META_LAST_SAVED] = dt_to_iso(
            dt_now_local()
        )
        if self._path is None:
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", dir=str(self._path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        const.LOGGER.debug("DEBUG: ReminderStore: Saved data to %s", self._path)
