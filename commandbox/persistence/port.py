"""Key-value storage ports the command store persists through."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Protocol, runtime_checkable

from ..errors import PersistenceError

logger = logging.getLogger("commandbox")


@runtime_checkable
class StoragePort(Protocol):
    """Load/save interface for serialized blobs under namespaced keys."""

    def read(self, key: str) -> str | None:
        ...

    def write(self, key: str, blob: str) -> None:
        ...


class MemoryStoragePort:
    """Keep blobs in a dict. Nothing survives the process."""

    def __init__(self, initial: Dict[str, str] | None = None) -> None:
        self.blobs: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self.blobs.get(key)

    def write(self, key: str, blob: str) -> None:
        self.blobs[key] = blob


class FileStoragePort:
    """Store each key as a JSON file inside a data directory."""

    SUFFIX = ".json"

    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        self.data_dir = Path(data_dir).expanduser()

    def path_for(self, key: str) -> Path:
        safe_name = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)
        return self.data_dir / f"{safe_name}{self.SUFFIX}"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Failed to read {path}: {exc}", key=key, operation="read") from exc

    def write(self, key: str, blob: str) -> None:
        path = self.path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(blob, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path}: {exc}", key=key, operation="write") from exc
        logger.debug("Wrote %d bytes to %s", len(blob), path)


__all__ = ["FileStoragePort", "MemoryStoragePort", "StoragePort"]
