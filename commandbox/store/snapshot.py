"""Versioned export bundles and the parsing rules for importing them."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, List, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..command import Command, Folder
from ..errors import ValidationError
from .validation import as_mapping

SNAPSHOT_VERSION = "3.0.0"
BACKUP_FILENAME_PATTERN = "command-manager-backup-{date}.json"


class Snapshot(BaseModel):
    """Immutable export of every folder and command in display order."""

    version: str = SNAPSHOT_VERSION
    export_time: datetime = Field(alias="exportTime")
    folders: Tuple[Folder, ...] = ()
    commands: Tuple[Command, ...] = ()

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def backup_filename(self) -> str:
        return BACKUP_FILENAME_PATTERN.format(date=self.export_time.date().isoformat())


@dataclass(slots=True, frozen=True)
class ImportResult:
    folders_imported: int = 0
    commands_imported: int = 0
    commands_skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class SnapshotPayload:
    """Raw folder and command mappings that passed import validation."""

    folders: List[Mapping[str, Any]]
    commands: List[Mapping[str, Any]]


def parse_snapshot(snapshot: Snapshot | Mapping[str, Any] | str | bytes) -> SnapshotPayload:
    """Check an import bundle and return its entries.

    Accepts a :class:`Snapshot`, a decoded mapping or JSON text. Raises
    :class:`ValidationError` when the folders or commands list is missing or
    any entry cannot be imported.
    """
    if isinstance(snapshot, (str, bytes)):
        try:
            snapshot = json.loads(snapshot)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Snapshot is not valid JSON: {exc}") from exc

    data = as_mapping(snapshot)
    if data is None:
        raise ValidationError("Snapshot must be an object with folders and commands")

    raw_folders = data.get("folders")
    raw_commands = data.get("commands")
    if not isinstance(raw_folders, (list, tuple)) or not isinstance(raw_commands, (list, tuple)):
        raise ValidationError("Snapshot must contain a folders list and a commands list")

    folders: List[Mapping[str, Any]] = []
    for index, entry in enumerate(raw_folders):
        folder = as_mapping(entry)
        if folder is None or not str(folder.get("name") or "").strip():
            raise ValidationError(f"Folder #{index} in snapshot has no name")
        folders.append(folder)

    commands: List[Mapping[str, Any]] = []
    for index, entry in enumerate(raw_commands):
        command = as_mapping(entry)
        if command is None:
            raise ValidationError(f"Command #{index} in snapshot is not an object")
        text = command.get("text")
        if text is None:
            text = command.get("command")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError(f"Command #{index} in snapshot has no text")
        commands.append(command)

    return SnapshotPayload(folders=folders, commands=commands)


__all__ = [
    "BACKUP_FILENAME_PATTERN",
    "ImportResult",
    "SNAPSHOT_VERSION",
    "Snapshot",
    "SnapshotPayload",
    "parse_snapshot",
]
