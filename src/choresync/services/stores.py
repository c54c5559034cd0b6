"""DurableStore adapters.

InMemoryStore backs tests and throwaway sessions. JsonFileStore keeps every
key in one JSON object on disk, written atomically through a temporary file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import orjson

from choresync.shared.errors import create_storage_error

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """Store persisted as a single JSON object of text values.

    A missing file reads as empty. A file that is not a JSON object is
    treated as empty and replaced on the next write.

    Args:
        path: Location of the JSON file; parent directories are created on
            the first write

    Raises:
        StorageError: From any method when the file cannot be read or written
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data, key)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data, key)

    def _read_all(self) -> dict[str, object]:
        try:
            raw = self.path.read_bytes()
        except (FileNotFoundError, NotADirectoryError):
            return {}
        except OSError as e:
            raise create_storage_error(
                f"Cannot read store file {self.path}: {e}",
                storage_key=str(self.path),
                operation="read_store",
                original_error=e,
            ) from e

        if not raw.strip():
            return {}

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.warning("Store file %s is corrupt, ignoring it: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold an object, ignoring it", self.path)
            return {}
        return data

    def _write_all(self, data: dict[str, object], key: str) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise create_storage_error(
                f"Cannot write store file {self.path}: {e}",
                storage_key=key,
                operation="write_store",
                original_error=e,
            ) from e
