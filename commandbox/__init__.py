"""Core package for storing, organizing and exchanging command snippets."""

from .command import Command, Folder, ViewSettings
from .errors import (
    CommandBoxError,
    DuplicateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .persistence import FileStoragePort, MemoryStoragePort, RedisStoragePort, StorageSettings
from .store import CommandStore, ImportResult, Snapshot

__all__ = [
    "Command",
    "CommandBoxError",
    "CommandStore",
    "DuplicateError",
    "FileStoragePort",
    "Folder",
    "ImportResult",
    "MemoryStoragePort",
    "NotFoundError",
    "PersistenceError",
    "RedisStoragePort",
    "Snapshot",
    "StorageSettings",
    "ValidationError",
    "ViewSettings",
]
