# vibecheck/services/local_storage.py
"""
Local key-value storage

Stands in for browser localStorage: string values under well-known keys,
scoped to the whole application rather than to a user.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from vibecheck.models.event import EventLog, EventRecord

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Local storage could not be read or written"""


class KeyValueStorage:
    """String values under string keys"""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStorage(KeyValueStorage):
    """Process-local storage, lost on exit"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileKeyValueStorage(KeyValueStorage):
    """One file per key inside a directory"""

    _SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not self._SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            # Replace atomically so readers never see a partial write
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e


class EventLogStore:
    """The event log as a JSON array under a single storage key"""

    def __init__(self, storage: KeyValueStorage, key: str):
        self.storage = storage
        self.key = key

    def raw(self) -> str:
        """Stored JSON text, or an empty array if nothing was logged yet"""
        return self.storage.get_item(self.key) or "[]"

    def get(self) -> List[EventRecord]:
        raw = self.raw()
        try:
            return EventLog.validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Event log under {self.key!r} is corrupted: {e.error_count()} errors") from e

    def set(self, records: List[EventRecord]) -> None:
        try:
            payload = EventLog.dump_json(records, by_alias=True).decode("utf-8")
        except (PydanticSerializationError, UnicodeEncodeError) as e:
            raise StorageError(f"Event log under {self.key!r} could not be serialized: {e}") from e
        self.storage.set_item(self.key, payload)


def create_storage(directory: Optional[str]) -> KeyValueStorage:
    if directory:
        logger.info(f"📁 Using local storage at {directory}")
        return FileKeyValueStorage(directory)

    logger.info("Local storage directory not configured, keeping events in memory")
    return MemoryKeyValueStorage()
