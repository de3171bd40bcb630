"""Command store engine: entity operations, validation and import/export."""

from .snapshot import ImportResult, Snapshot, parse_snapshot
from .store import CommandStore, CommandView, StoreStats
from .validation import ValidatedState, validate_state

__all__ = [
    "CommandStore",
    "CommandView",
    "ImportResult",
    "Snapshot",
    "StoreStats",
    "ValidatedState",
    "parse_snapshot",
    "validate_state",
]
