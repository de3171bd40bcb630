"""In-memory command store persisted through a key-value storage port."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Iterator, List, Mapping

from ..command import (
    DEFAULT_FOLDER_ID,
    VIEW_MODES,
    Command,
    Folder,
    ViewSettings,
    derive_command_name,
    generate_id,
    utc_now,
)
from ..errors import DuplicateError, NotFoundError, PersistenceError, ValidationError
from ..exception_handler import ErrorHandler
from ..persistence.keys import StorageKeys
from ..persistence.port import StoragePort
from .snapshot import SNAPSHOT_VERSION, ImportResult, Snapshot, parse_snapshot
from .validation import ValidatedState, build_command, validate_state

logger = logging.getLogger("commandbox")


@dataclass(slots=True, frozen=True)
class StoreStats:
    total_commands: int
    total_folders: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def matches_query(command: Command, query: str) -> bool:
    """Case-insensitive substring match against a command's name or text."""
    needle = query.lower()
    return needle in command.name.lower() or needle in command.text.lower()


class CommandView:
    """Restartable, lazily filtered view over the store's command order.

    Each iteration walks the current collection, so a view created before a
    mutation reflects the state at the time it is iterated.
    """

    def __init__(self, commands: List[Command], *, folder_id: str, query: str = "") -> None:
        self._commands = commands
        self.folder_id = folder_id
        self.query = query

    def __iter__(self) -> Iterator[Command]:
        show_all = self.folder_id == DEFAULT_FOLDER_ID
        for command in self._commands:
            if not show_all and command.folder_id != self.folder_id:
                continue
            if self.query and not matches_query(command, self.query):
                continue
            yield command.model_copy()

    def ids(self) -> List[str]:
        return [command.id for command in self]


class CommandStore:
    """Owns commands, folders and view settings and enforces their invariants.

    Every mutation updates memory first and then writes the three state keys
    through the port. A failed write never rolls the mutation back: the error
    is logged, collected on ``error_handler`` and exposed as
    ``last_persistence_error`` until the next save attempt.
    """

    def __init__(
        self,
        port: StoragePort,
        *,
        keys: StorageKeys | None = None,
        error_handler: ErrorHandler | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[str], str] = generate_id,
    ) -> None:
        self.port = port
        self.keys = keys or StorageKeys()
        self.error_handler = error_handler or ErrorHandler()
        self.clock = clock
        self.id_factory = id_factory
        self.last_persistence_error: PersistenceError | None = None

        self._commands: List[Command] = []
        self._folders: List[Folder] = []
        self._settings = ViewSettings()
        self._apply(validate_state([], [], None, clock=clock, id_factory=id_factory))

    @classmethod
    def open(cls, port: StoragePort, **kwargs: Any) -> "CommandStore":
        store = cls(port, **kwargs)
        store.load()
        return store

    # Persistence -------------------------------------------------------------

    def load(self) -> None:
        """Replace in-memory state with the validated contents of the port."""
        self.last_persistence_error = None
        try:
            raw_commands = self._read_json(self.keys.commands)
            raw_folders = self._read_json(self.keys.folders)
            raw_settings = self._read_json(self.keys.settings)
        except PersistenceError as exc:
            self._record_persistence_error(exc)
            logger.warning("Stored state could not be loaded, starting from defaults")
            self._apply(validate_state([], [], None, clock=self.clock, id_factory=self.id_factory))
            return

        if raw_commands is not None and not isinstance(raw_commands, list):
            logger.warning("Ignoring stored commands: expected a list")
            raw_commands = None
        if raw_folders is not None and not isinstance(raw_folders, list):
            logger.warning("Ignoring stored folders: expected a list")
            raw_folders = None

        self._apply(
            validate_state(
                raw_commands,
                raw_folders,
                raw_settings,
                clock=self.clock,
                id_factory=self.id_factory,
            )
        )
        logger.debug(
            "Loaded %d commands in %d folders", len(self._commands), len(self._folders)
        )

    def save(self) -> bool:
        """Write all state keys. Returns ``False`` when any write failed."""
        self.last_persistence_error = None
        payloads = {
            self.keys.commands: [command.to_dict() for command in self._commands],
            self.keys.folders: [folder.to_dict() for folder in self._folders],
            self.keys.settings: self._settings.to_dict(),
        }
        for key, payload in payloads.items():
            try:
                self.port.write(key, json.dumps(payload, ensure_ascii=False))
            except PersistenceError as exc:
                self._record_persistence_error(exc)
        return self.last_persistence_error is None

    def _read_json(self, key: str) -> Any:
        blob = self.port.read(key)
        if blob is None:
            return None
        try:
            return json.loads(blob)
        except ValueError as exc:
            raise PersistenceError(f"Stored value for {key} is not valid JSON", key=key, operation="parse") from exc

    def _record_persistence_error(self, error: PersistenceError) -> None:
        self.last_persistence_error = error
        self.error_handler.collect_persistence_error(error)

    def _apply(self, state: ValidatedState) -> None:
        # views returned by search() hold this list, so replace its contents
        self._commands[:] = state.commands
        self._folders = state.folders
        self._settings = state.settings

    # Queries -----------------------------------------------------------------

    @property
    def commands(self) -> List[Command]:
        return [command.model_copy() for command in self._commands]

    @property
    def folders(self) -> List[Folder]:
        return [folder.model_copy() for folder in self._folders]

    @property
    def view_settings(self) -> ViewSettings:
        return self._settings.model_copy()

    def get_command(self, command_id: str) -> Command:
        return self._require_command(command_id).model_copy()

    def get_folder(self, folder_id: str) -> Folder:
        return self._require_folder(folder_id).model_copy()

    def search(self, query: str = "", folder_id: str | None = None) -> CommandView:
        if folder_id is None:
            folder_id = self._settings.current_folder_id
        return CommandView(self._commands, folder_id=folder_id, query=query or "")

    def stats(self) -> StoreStats:
        return StoreStats(
            total_commands=len(self._commands),
            total_folders=sum(1 for folder in self._folders if not folder.is_default),
        )

    # Commands ----------------------------------------------------------------

    def add_command(self, text: str, name: str | None = None, folder_id: str | None = None) -> Command:
        cleaned_text = (text or "").strip()
        if not cleaned_text:
            raise ValidationError("Command text is required")
        if folder_id is None:
            folder_id = self._settings.current_folder_id
        else:
            self._require_folder(folder_id)

        now = self.clock()
        command = Command(
            id=self.id_factory("cmd"),
            name=(name or "").strip() or derive_command_name(cleaned_text),
            text=cleaned_text,
            folder_id=folder_id,
            created_at=now,
            updated_at=now,
            use_count=0,
        )
        self._commands.append(command)
        logger.info("Added command %s to folder %s", command.id, folder_id)
        self.save()
        return command.model_copy()

    def update_command(self, command_id: str, text: str, name: str | None = None) -> Command:
        command = self._require_command(command_id)
        cleaned_text = (text or "").strip()
        if not cleaned_text:
            raise ValidationError("Command text is required")

        command.name = (name or "").strip() or derive_command_name(cleaned_text)
        command.text = cleaned_text
        command.updated_at = self._bumped(command)
        logger.info("Updated command %s", command_id)
        self.save()
        return command.model_copy()

    def delete_command(self, command_id: str) -> bool:
        index = self._index_of(command_id)
        if index is None:
            logger.debug("Delete ignored, no command %s", command_id)
            return False
        del self._commands[index]
        logger.info("Deleted command %s", command_id)
        self.save()
        return True

    def record_use(self, command_id: str) -> Command:
        command = self._require_command(command_id)
        command.use_count += 1
        command.updated_at = self._bumped(command)
        self.save()
        return command.model_copy()

    def move_to_folder(self, command_id: str, target_folder_id: str) -> Command:
        command = self._require_command(command_id)
        self._require_folder(target_folder_id)
        if command.folder_id == target_folder_id:
            return command.model_copy()

        command.folder_id = target_folder_id
        command.updated_at = self._bumped(command)
        logger.info("Moved command %s to folder %s", command_id, target_folder_id)
        self.save()
        return command.model_copy()

    def reorder(self, dragged_id: str, target_id: str) -> bool:
        """Move ``dragged_id`` to sit immediately before ``target_id``."""
        dragged_index = self._index_of(dragged_id)
        if dragged_index is None or self._index_of(target_id) is None or dragged_id == target_id:
            logger.debug("Reorder ignored for %s -> %s", dragged_id, target_id)
            return False

        dragged = self._commands.pop(dragged_index)
        target_index = self._index_of(target_id)
        self._commands.insert(target_index, dragged)
        self.save()
        return True

    # Folders -----------------------------------------------------------------

    def create_folder(self, name: str) -> Folder:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Folder name is required")
        if self._folder_by_name(cleaned) is not None:
            raise DuplicateError(cleaned)

        folder = Folder(id=self.id_factory("folder"), name=cleaned, is_default=False)
        self._folders.append(folder)
        logger.info("Created folder %s (%s)", folder.id, cleaned)
        self.save()
        return folder.model_copy()

    def rename_folder(self, folder_id: str, new_name: str) -> Folder:
        folder = self._require_folder(folder_id)
        if folder.is_default:
            logger.debug("Rename ignored for the default folder")
            return folder.model_copy()

        cleaned = (new_name or "").strip()
        if not cleaned:
            raise ValidationError("Folder name is required")
        if cleaned == folder.name:
            return folder.model_copy()
        existing = self._folder_by_name(cleaned)
        if existing is not None and existing.id != folder_id:
            raise DuplicateError(cleaned)

        folder.name = cleaned
        logger.info("Renamed folder %s to %s", folder_id, cleaned)
        self.save()
        return folder.model_copy()

    def delete_folder(self, folder_id: str) -> int | None:
        """Delete a folder, moving its commands to the default folder.

        Returns the number of reassigned commands, or ``None`` if nothing was
        deleted.
        """
        folder = self._find_folder(folder_id)
        if folder is None or folder.is_default:
            logger.debug("Delete ignored for folder %s", folder_id)
            return None

        now = self.clock()
        moved = 0
        for command in self._commands:
            if command.folder_id == folder_id:
                command.folder_id = DEFAULT_FOLDER_ID
                command.updated_at = max(now, command.created_at)
                moved += 1

        self._folders = [item for item in self._folders if item.id != folder_id]
        if self._settings.current_folder_id == folder_id:
            self._settings.current_folder_id = DEFAULT_FOLDER_ID
        logger.info("Deleted folder %s, moved %d commands to default", folder_id, moved)
        self.save()
        return moved

    # View settings -----------------------------------------------------------

    def switch_folder(self, folder_id: str) -> ViewSettings:
        self._require_folder(folder_id)
        if self._settings.current_folder_id != folder_id:
            self._settings.current_folder_id = folder_id
            self.save()
        return self.view_settings

    def switch_view(self, mode: str) -> ViewSettings:
        if mode not in VIEW_MODES:
            raise ValidationError(f"Unknown view mode: {mode}")
        if self._settings.view_mode != mode:
            self._settings.view_mode = mode
            self.save()
        return self.view_settings

    # Import / export ---------------------------------------------------------

    def export_snapshot(self) -> Snapshot:
        return Snapshot(
            version=SNAPSHOT_VERSION,
            export_time=self.clock(),
            folders=tuple(folder.model_copy(deep=True) for folder in self._folders),
            commands=tuple(command.model_copy(deep=True) for command in self._commands),
        )

    def import_merge(self, snapshot: Snapshot | Mapping[str, Any] | str | bytes) -> ImportResult:
        """Merge a snapshot into the store, skipping duplicate commands.

        Folders are matched by exact name. A command is a duplicate when an
        existing command has the same trimmed, case-insensitive name and the
        same trimmed text.
        """
        payload = parse_snapshot(snapshot)
        now = self.clock()

        local_ids_by_name = {folder.name: folder.id for folder in self._folders}
        folders_imported = 0
        for raw_folder in payload.folders:
            if _is_default_entry(raw_folder):
                continue
            name = str(raw_folder["name"]).strip()
            if name in local_ids_by_name:
                continue
            folder = Folder(id=self.id_factory("folder"), name=name, is_default=False)
            self._folders.append(folder)
            local_ids_by_name[name] = folder.id
            folders_imported += 1

        folder_id_map: dict[str, str] = {}
        for raw_folder in payload.folders:
            old_id = raw_folder.get("id")
            local_id = local_ids_by_name.get(str(raw_folder["name"]).strip())
            if old_id is not None and local_id is not None:
                folder_id_map[str(old_id)] = local_id

        existing = {_dedupe_key(command) for command in self._commands}
        commands_imported = 0
        commands_skipped = 0
        for raw_command in payload.commands:
            old_folder_id = raw_command.get("folderId", raw_command.get("folder_id"))
            command = build_command(
                raw_command,
                command_id=self.id_factory("cmd"),
                folder_id=folder_id_map.get(str(old_folder_id), DEFAULT_FOLDER_ID),
                now=now,
            )
            key = _dedupe_key(command)
            if key in existing:
                commands_skipped += 1
                continue
            self._commands.append(command)
            existing.add(key)
            commands_imported += 1

        result = ImportResult(
            folders_imported=folders_imported,
            commands_imported=commands_imported,
            commands_skipped=commands_skipped,
        )
        logger.info(
            "Imported %d folders and %d commands, skipped %d duplicates",
            result.folders_imported,
            result.commands_imported,
            result.commands_skipped,
        )
        self.save()
        return result

    def reset_all(self) -> None:
        self._apply(validate_state([], [], None, clock=self.clock, id_factory=self.id_factory))
        logger.info("Reset all commands and folders")
        self.save()

    # Helpers -----------------------------------------------------------------

    def _bumped(self, command: Command) -> datetime:
        return max(self.clock(), command.created_at)

    def _index_of(self, command_id: str) -> int | None:
        for index, command in enumerate(self._commands):
            if command.id == command_id:
                return index
        return None

    def _require_command(self, command_id: str) -> Command:
        index = self._index_of(command_id)
        if index is None:
            raise NotFoundError("command", command_id)
        return self._commands[index]

    def _find_folder(self, folder_id: str) -> Folder | None:
        return next((folder for folder in self._folders if folder.id == folder_id), None)

    def _require_folder(self, folder_id: str) -> Folder:
        folder = self._find_folder(folder_id)
        if folder is None:
            raise NotFoundError("folder", folder_id)
        return folder

    def _folder_by_name(self, name: str) -> Folder | None:
        return next((folder for folder in self._folders if folder.name == name), None)


def _is_default_entry(raw_folder: Mapping[str, Any]) -> bool:
    if raw_folder.get("isDefault") or raw_folder.get("is_default"):
        return True
    return raw_folder.get("id") == DEFAULT_FOLDER_ID


def _dedupe_key(command: Command) -> tuple[str, str]:
    return command.name.strip().lower(), command.text.strip()


__all__ = ["CommandStore", "CommandView", "StoreStats", "matches_query"]
