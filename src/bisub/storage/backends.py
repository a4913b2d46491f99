"""Key/value storage collaborators.

Every backend exposes the same async ``get``/``set``/``delete`` surface over
JSON-serialisable values. Backend failures are raised as ``StorageError``;
callers decide whether they are fatal.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import os
import re
from pathlib import Path
from typing import Any, Protocol

from bisub.core.config import StorageConfig
from bisub.core.errors import StorageError

_UNSAFE_CHARS_RE = re.compile(r"[^\w.-]")


class Storage(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Values are JSON round-tripped on write."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialise value for {key!r}: {e}") from e

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """One JSON file per key under a directory.

    Filenames are the sanitised key plus a short hash so distinct keys never
    collide after sanitising.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode()).hexdigest()[:8]
        safe = _UNSAFE_CHARS_RE.sub("_", key)[:100]
        return self.directory / f"{safe}-{digest}.json"

    def _read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def _write(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    def _delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot delete {key!r}: {e}") from e

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


def create_storage(config: StorageConfig) -> Storage:
    """Build the storage backend selected in config."""
    if config.backend == "memory":
        return MemoryStorage()
    if config.backend == "json":
        return JsonFileStorage(config.directory)
    raise ValueError(f"Unknown storage backend: {config.backend}")
