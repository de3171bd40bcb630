"""Load-time repair of raw command store state.

Persisted blobs may come from older releases, hand-edited files or a partial
write. ``validate_state`` turns whatever was read into entities that satisfy
the store invariants: the default folder exists exactly once, folder ids and
names are unique, every command points at an existing folder and carries an
id, a name, timestamps and a use count. Running it on its own output changes
nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping

from pydantic import BaseModel

from ..command import (
    DEFAULT_FOLDER_ID,
    DEFAULT_FOLDER_NAME,
    VIEW_GRID,
    VIEW_MODES,
    Command,
    Folder,
    ViewSettings,
    derive_command_name,
    generate_id,
    utc_now,
)

logger = logging.getLogger("commandbox")


@dataclass(slots=True)
class ValidatedState:
    commands: List[Command] = field(default_factory=list)
    folders: List[Folder] = field(default_factory=list)
    settings: ViewSettings = field(default_factory=ViewSettings)


def validate_state(
    raw_commands: Iterable[Any] | None,
    raw_folders: Iterable[Any] | None,
    raw_settings: Any = None,
    *,
    clock: Callable[[], datetime] = utc_now,
    id_factory: Callable[[str], str] = generate_id,
) -> ValidatedState:
    folders, folder_remap = _validate_folders(raw_folders)
    folder_ids = {folder.id for folder in folders}
    commands = _validate_commands(
        raw_commands,
        folder_ids,
        folder_remap,
        clock=clock,
        id_factory=id_factory,
    )
    settings = _validate_settings(raw_settings, folder_ids)
    return ValidatedState(commands=commands, folders=folders, settings=settings)


def build_command(
    data: Mapping[str, Any],
    *,
    command_id: str,
    folder_id: str,
    now: datetime,
) -> Command | None:
    """Backfill a raw command mapping with the creation rules.

    Returns ``None`` when the entry has no usable text.
    """
    text = _field(data, "text", "command")
    if not isinstance(text, str) or not text.strip():
        return None
    text = text.strip()

    name = _clean_str(_field(data, "name")) or derive_command_name(text)

    created_at = _parse_datetime(_field(data, "createdAt", "created_at")) or now
    updated_at = _parse_datetime(_field(data, "updatedAt", "updated_at")) or created_at
    if updated_at < created_at:
        updated_at = created_at

    return Command(
        id=command_id,
        name=name,
        text=text,
        folder_id=folder_id,
        created_at=created_at,
        updated_at=updated_at,
        use_count=_coerce_use_count(_field(data, "useCount", "use_count")),
    )


def as_mapping(entry: Any) -> Mapping[str, Any] | None:
    if isinstance(entry, BaseModel):
        return entry.model_dump(by_alias=True)
    if isinstance(entry, Mapping):
        return entry
    return None


def _validate_folders(raw_folders: Iterable[Any] | None) -> tuple[List[Folder], dict[str, str]]:
    candidates: list[tuple[str, str]] = []
    seen_ids: set[str] = set()
    for entry in raw_folders or []:
        data = as_mapping(entry)
        if data is None:
            logger.warning("Dropping malformed folder entry: %r", entry)
            continue
        folder_id = _clean_str(_field(data, "id"))
        name = _clean_str(_field(data, "name"))
        if folder_id == DEFAULT_FOLDER_ID and not name:
            name = DEFAULT_FOLDER_NAME
        if not folder_id or not name or folder_id in seen_ids:
            logger.warning("Dropping invalid folder entry: %r", dict(data))
            continue
        seen_ids.add(folder_id)
        candidates.append((folder_id, name))

    if DEFAULT_FOLDER_ID not in seen_ids:
        candidates.insert(0, (DEFAULT_FOLDER_ID, DEFAULT_FOLDER_NAME))

    default_name = next(name for folder_id, name in candidates if folder_id == DEFAULT_FOLDER_ID)
    name_owner: dict[str, str] = {default_name: DEFAULT_FOLDER_ID}
    remap: dict[str, str] = {}
    folders: List[Folder] = []
    for folder_id, name in candidates:
        if folder_id == DEFAULT_FOLDER_ID:
            folders.append(Folder(id=folder_id, name=name, is_default=True))
            continue
        owner = name_owner.get(name)
        if owner is not None:
            logger.warning("Merging folder %s into %s: duplicate name %r", folder_id, owner, name)
            remap[folder_id] = owner
            continue
        name_owner[name] = folder_id
        folders.append(Folder(id=folder_id, name=name, is_default=False))

    return folders, remap


def _validate_commands(
    raw_commands: Iterable[Any] | None,
    folder_ids: set[str],
    folder_remap: dict[str, str],
    *,
    clock: Callable[[], datetime],
    id_factory: Callable[[str], str],
) -> List[Command]:
    commands: List[Command] = []
    seen_ids: set[str] = set()
    now = clock()
    for entry in raw_commands or []:
        data = as_mapping(entry)
        if data is None:
            logger.warning("Dropping malformed command entry: %r", entry)
            continue

        folder_id = _clean_str(_field(data, "folderId", "folder_id")) or DEFAULT_FOLDER_ID
        folder_id = folder_remap.get(folder_id, folder_id)
        if folder_id not in folder_ids:
            logger.warning("Dropping command %s: folder %s does not exist", data.get("id"), folder_id)
            continue

        command_id = _clean_str(_field(data, "id"))
        if not command_id or command_id in seen_ids:
            command_id = id_factory("cmd")

        command = build_command(data, command_id=command_id, folder_id=folder_id, now=now)
        if command is None:
            logger.warning("Dropping command %s: empty text", command_id)
            continue
        seen_ids.add(command.id)
        commands.append(command)
    return commands


def _validate_settings(raw_settings: Any, folder_ids: set[str]) -> ViewSettings:
    data = as_mapping(raw_settings) or {}
    current = _clean_str(_field(data, "currentFolderId", "current_folder_id", "currentFolder"))
    if current not in folder_ids:
        current = DEFAULT_FOLDER_ID
    view_mode = _field(data, "viewMode", "view_mode")
    if view_mode not in VIEW_MODES:
        view_mode = VIEW_GRID
    return ViewSettings(current_folder_id=current, view_mode=view_mode)


def _field(data: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return None


def _clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _coerce_use_count(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return max(0, count)


__all__ = ["ValidatedState", "as_mapping", "build_command", "validate_state"]
