"""
Key/value storage handles for the local note store.

Modeled on browser localStorage: string values under string keys. The
handle is injected into LocalNoteStore so tests can swap the on-disk file
for an in-memory dict.
"""

import json
import logging
from pathlib import Path
from typing import Protocol

from pronotes.core.exceptions import CorruptFileError, StorageUnavailableError

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """In-process storage, nothing survives the process."""

    def __init__(self, items: dict[str, str] | None = None):
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class JsonFileStorage:
    """All keys kept in one JSON object file.

    Writes go through a temp file and a rename so a crash never leaves a
    half-written file behind.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot read notes file {self.path}", detail=str(e)
            ) from e
        try:
            data = json.loads(text)
        except ValueError as e:
            raise CorruptFileError(f"Notes file {self.path} is not valid JSON", detail=str(e)) from e
        if not isinstance(data, dict):
            raise CorruptFileError(f"Notes file {self.path} is not a JSON object")
        return data

    def get_item(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except CorruptFileError as e:
            # corrupt content is replaced, not merged
            logger.warning(f"⚠️ Overwriting corrupt notes file {self.path}: {e.message}")
            data = {}
        data[key] = value
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to write notes file {self.path}: {e}")
            raise StorageUnavailableError(
                f"Cannot write notes file {self.path}", detail=str(e)
            ) from e
