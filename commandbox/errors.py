"""Error types raised by the command store and its persistence ports."""

from __future__ import annotations


class CommandBoxError(Exception):
    """Base class for every recoverable command store failure."""


class ValidationError(CommandBoxError):
    """A required field is empty or an imported snapshot is malformed."""


class NotFoundError(CommandBoxError):
    """An operation targets a command or folder id that does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"Unknown {kind} id: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class DuplicateError(CommandBoxError):
    """A folder name collides with an existing folder."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Folder name already exists: {name}")
        self.name = name


class PersistenceError(CommandBoxError):
    """Reading from or writing to the storage port failed."""

    def __init__(self, message: str, *, key: str | None = None, operation: str | None = None) -> None:
        super().__init__(message)
        self.key = key
        self.operation = operation


__all__ = [
    "CommandBoxError",
    "DuplicateError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
