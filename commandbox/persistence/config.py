from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .keys import DEFAULT_KEY_PREFIX, StorageKeys
from .port import FileStoragePort, MemoryStoragePort, StoragePort
from .redis_port import RedisStoragePort

logger = logging.getLogger("commandbox")

BACKEND_MEMORY = "memory"
BACKEND_FILE = "file"
BACKEND_REDIS = "redis"
BACKENDS = (BACKEND_MEMORY, BACKEND_FILE, BACKEND_REDIS)


@dataclass(slots=True)
class StorageSettings:
    """Runtime configuration for command store persistence."""

    backend: str = BACKEND_FILE
    data_dir: str = "~/.commandbox"
    redis_url: str = "redis://127.0.0.1:6379/0"
    key_prefix: str = DEFAULT_KEY_PREFIX
    redis_ttl: int | None = None
    log_level: str = "INFO"

    @property
    def keys(self) -> StorageKeys:
        return StorageKeys(prefix=self.key_prefix)

    @classmethod
    def from_env(cls) -> "StorageSettings":
        def _optional_int(name: str) -> int | None:
            raw = os.getenv(name)
            if not raw:
                return None
            try:
                return int(raw)
            except ValueError:
                logger.warning("Invalid integer for %s: %s", name, raw)
                return None

        backend = os.getenv("COMMANDBOX_BACKEND", BACKEND_FILE).strip().lower()
        if backend not in BACKENDS:
            logger.warning("Unknown storage backend %s, falling back to %s", backend, BACKEND_FILE)
            backend = BACKEND_FILE

        return cls(
            backend=backend,
            data_dir=os.getenv("COMMANDBOX_DATA_DIR", "~/.commandbox"),
            redis_url=os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0"),
            key_prefix=os.getenv("COMMANDBOX_KEY_PREFIX", DEFAULT_KEY_PREFIX),
            redis_ttl=_optional_int("COMMANDBOX_REDIS_TTL"),
            log_level=os.getenv("COMMANDBOX_LOG_LEVEL", "INFO"),
        )


def create_port(settings: StorageSettings) -> StoragePort:
    """Instantiate the storage port selected by the settings."""

    if settings.backend == BACKEND_MEMORY:
        return MemoryStoragePort()
    if settings.backend == BACKEND_REDIS:
        return RedisStoragePort.from_url(settings.redis_url, ttl_seconds=settings.redis_ttl)
    return FileStoragePort(settings.data_dir)


__all__ = [
    "BACKENDS",
    "BACKEND_FILE",
    "BACKEND_MEMORY",
    "BACKEND_REDIS",
    "StorageSettings",
    "create_port",
]
