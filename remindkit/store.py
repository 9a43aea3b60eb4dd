# File: store.py
"""Handles persistent data storage for remindkit.

The core treats the reminder list as the sole source of truth and always
reads the full set before computing conflicts. Stores keep one document:

    {"meta": {"schema_version": 2, ...}, "reminders": [...]}

`meta` also holds process-wide guard keys such as the last digest day.
Legacy documents are migrated on load (see migration.py).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import copy
import json
import os
from pathlib import Path
import tempfile
from typing import Any

from . import const
from .migration import migrate_document


class ReminderStore(ABC):
    """Base class for reminder persistence.

    Subclasses implement `_read()` / `_write()`; everything else (defaults,
    migration, meta access, error logging) is shared. Save failures are
    logged and reported through the return value, never raised, so a
    completed mutation is never rolled back by a storage problem.
    """

    def __init__(self, storage_key: str = const.STORAGE_KEY) -> None:
        """Initialize the store.

        Args:
            storage_key: Key identifying the storage location.
        """
        self._storage_key = storage_key
        self._data: dict[str, Any] = ReminderStore.get_default_structure()
        self._loaded = False

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
            },
            const.DATA_REMINDERS: [],
        }

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory document."""
        return self._data

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _read(self) -> dict[str, Any] | list[Any] | None:
        """Read the raw stored document (None when nothing is stored)."""

    @abstractmethod
    def _write(self, document: dict[str, Any]) -> None:
        """Write the full document."""

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    def load(self) -> list[dict[str, Any]]:
        """Load the reminder list, migrating legacy data on first access.

        Returns:
            A copy of the stored reminder list.
        """
        raw = self._read()
        if raw is None:
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = ReminderStore.get_default_structure()
        else:
            self._data = migrate_document(raw)
            if self._data != raw:
                # Persist the migrated shape once so later loads are no-ops
                self._save_document()
            const.LOGGER.debug(
                "Loaded %s reminder(s) from storage '%s'",
                len(self._data[const.DATA_REMINDERS]),
                self._storage_key,
            )
        self._loaded = True
        return copy.deepcopy(self._data[const.DATA_REMINDERS])

    def save(self, reminders: list[dict[str, Any]]) -> bool:
        """Replace the stored reminder list.

        Returns:
            True on success, False if the backend failed (already logged).
        """
        self._data[const.DATA_REMINDERS] = copy.deepcopy(reminders)
        return self._save_document()

    def get_meta(self, key: str, default: Any = None) -> Any:
        """Read a value from the meta section."""
        if not self._loaded:
            self.load()
        return self._data.get(const.DATA_META, {}).get(key, default)

    def set_meta(self, key: str, value: Any) -> bool:
        """Write a value into the meta section and persist."""
        if not self._loaded:
            self.load()
        self._data.setdefault(const.DATA_META, {})[key] = value
        return self._save_document()

    def clear(self) -> bool:
        """Reset to the default structure and persist."""
        const.LOGGER.warning("WARNING: Clearing all reminder data and resetting storage")
        self._data = ReminderStore.get_default_structure()
        return self._save_document()

    def _save_document(self) -> bool:
        """Write the in-memory document, logging backend failures."""
        try:
            self._write(self._data)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for '%s'",
                err,
                self._storage_key,
            )
            return False
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s",
                err,
            )
            return False
        const.LOGGER.debug("Data saved successfully to storage '%s'", self._storage_key)
        return True


class MemoryReminderStore(ReminderStore):
    """In-process store; the document lives only as long as the object."""

    def __init__(
        self,
        initial: dict[str, Any] | list[Any] | None = None,
        storage_key: str = const.STORAGE_KEY,
    ) -> None:
        super().__init__(storage_key)
        self._backing: dict[str, Any] | list[Any] | None = copy.deepcopy(initial)
        self.save_count = 0

    def _read(self) -> dict[str, Any] | list[Any] | None:
        return copy.deepcopy(self._backing)

    def _write(self, document: dict[str, Any]) -> None:
        # Round-trip through JSON so non-serializable values fail here too
        self._backing = json.loads(json.dumps(document))
        self.save_count += 1


class JsonFileReminderStore(ReminderStore):
    """Single JSON file store, written atomically (temp file + replace)."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON document. Parent directories are
                created on first save.
        """
        self._path = Path(path)
        super().__init__(storage_key=str(self._path))

    def get_storage_path(self) -> str:
        """Get the storage file path."""
        return str(self._path)

    def _read(self) -> dict[str, Any] | list[Any] | None:
        if not self._path.exists():
            return None
        try:
            with self._path.open(encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, ValueError) as err:
            corrupt_path = self._path.with_suffix(self._path.suffix + ".corrupt")
            const.LOGGER.error(
                "ERROR: Could not read storage file %s: %s. Moving it to %s",
                self._path,
                err,
                corrupt_path,
            )
            try:
                os.replace(self._path, corrupt_path)
            except OSError as move_err:
                const.LOGGER.error(
                    "ERROR: Failed to move unreadable storage file: %s", move_err
                )
            return None

    def _write(self, document: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(document, ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
