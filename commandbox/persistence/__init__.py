"""Storage ports and configuration for persisting the command store."""

from .config import StorageSettings, create_port
from .keys import StorageKeys, read_theme, write_theme
from .port import FileStoragePort, MemoryStoragePort, StoragePort
from .redis_port import RedisStoragePort

__all__ = [
    "FileStoragePort",
    "MemoryStoragePort",
    "RedisStoragePort",
    "StorageKeys",
    "StoragePort",
    "StorageSettings",
    "create_port",
    "read_theme",
    "write_theme",
]
