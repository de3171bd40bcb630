"""Service-layer helpers that translate store operations for the API."""

from __future__ import annotations

import logging
from itertools import islice
from typing import Any, List, Mapping

from fastapi import HTTPException

from ..errors import (
    CommandBoxError,
    DuplicateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..persistence.keys import read_theme, write_theme
from ..store import CommandStore
from .model import (
    CommandCreateRequest,
    CommandListResponse,
    CommandMoveRequest,
    CommandResponse,
    CommandUpdateRequest,
    FolderCreateRequest,
    FolderDeleteResponse,
    FolderRenameRequest,
    FolderResponse,
    ImportResponse,
    ReorderRequest,
    ReorderResponse,
    SettingsResponse,
    SettingsUpdateRequest,
    StatsResponse,
    ThemeRequest,
    ThemeResponse,
)

logger = logging.getLogger("commandbox")

PERSISTENCE_WARNING_HEADER = "X-Persistence-Warning"


def to_http_exception(exc: CommandBoxError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, DuplicateError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    logger.error("Unexpected store error: %s", exc)
    return HTTPException(status_code=500, detail=str(exc))


def persistence_warning(store: CommandStore) -> str | None:
    error = store.last_persistence_error
    if error is None:
        return None
    return str(error) or error.__class__.__name__


# Commands ----------------------------------------------------------------------


def list_commands_service(
    store: CommandStore,
    *,
    query: str = "",
    folder_id: str | None = None,
    limit: int | None = None,
) -> CommandListResponse:
    view = store.search(query, folder_id)
    commands = view if limit is None else islice(view, limit)
    results = [CommandResponse.from_command(command) for command in commands]
    return CommandListResponse(query=view.query, folder_id=view.folder_id, results=results)


def get_command_service(store: CommandStore, command_id: str) -> CommandResponse:
    try:
        command = store.get_command(command_id)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return CommandResponse.from_command(command)


def add_command_service(store: CommandStore, payload: CommandCreateRequest) -> CommandResponse:
    try:
        command = store.add_command(payload.text, name=payload.name, folder_id=payload.folder_id)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return CommandResponse.from_command(command)


def update_command_service(
    store: CommandStore,
    command_id: str,
    payload: CommandUpdateRequest,
) -> CommandResponse:
    try:
        command = store.update_command(command_id, payload.text, name=payload.name)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return CommandResponse.from_command(command)


def delete_command_service(store: CommandStore, command_id: str) -> bool:
    return store.delete_command(command_id)


def use_command_service(store: CommandStore, command_id: str) -> CommandResponse:
    try:
        command = store.record_use(command_id)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return CommandResponse.from_command(command)


def move_command_service(
    store: CommandStore,
    command_id: str,
    payload: CommandMoveRequest,
) -> CommandResponse:
    try:
        command = store.move_to_folder(command_id, payload.folder_id)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return CommandResponse.from_command(command)


def reorder_commands_service(store: CommandStore, payload: ReorderRequest) -> ReorderResponse:
    return ReorderResponse(moved=store.reorder(payload.dragged_id, payload.target_id))


# Folders -----------------------------------------------------------------------


def list_folders_service(store: CommandStore) -> List[FolderResponse]:
    return [FolderResponse.from_folder(folder) for folder in store.folders]


def create_folder_service(store: CommandStore, payload: FolderCreateRequest) -> FolderResponse:
    try:
        folder = store.create_folder(payload.name)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return FolderResponse.from_folder(folder)


def rename_folder_service(
    store: CommandStore,
    folder_id: str,
    payload: FolderRenameRequest,
) -> FolderResponse:
    try:
        folder = store.rename_folder(folder_id, payload.name)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return FolderResponse.from_folder(folder)


def delete_folder_service(store: CommandStore, folder_id: str) -> FolderDeleteResponse:
    moved = store.delete_folder(folder_id)
    if moved is None:
        return FolderDeleteResponse(deleted=False, moved_commands=0)
    return FolderDeleteResponse(deleted=True, moved_commands=moved)


# Settings, stats and theme -----------------------------------------------------


def get_settings_service(store: CommandStore) -> SettingsResponse:
    return SettingsResponse.from_settings(store.view_settings)


def update_settings_service(store: CommandStore, payload: SettingsUpdateRequest) -> SettingsResponse:
    try:
        if payload.current_folder_id is not None:
            store.switch_folder(payload.current_folder_id)
        if payload.view_mode is not None:
            store.switch_view(payload.view_mode)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return SettingsResponse.from_settings(store.view_settings)


def stats_service(store: CommandStore) -> StatsResponse:
    stats = store.stats()
    return StatsResponse(total_commands=stats.total_commands, total_folders=stats.total_folders)


def get_theme_service(store: CommandStore) -> ThemeResponse:
    try:
        theme = read_theme(store.port, store.keys)
    except PersistenceError as exc:
        logger.warning("Failed to read theme preference: %s", exc)
        theme = "light"
    return ThemeResponse(theme=theme)


def update_theme_service(store: CommandStore, payload: ThemeRequest) -> ThemeResponse:
    try:
        theme = write_theme(store.port, payload.theme, store.keys)
    except PersistenceError as exc:
        logger.exception("Failed to store theme preference")
        raise HTTPException(status_code=503, detail="Failed to store theme preference") from exc
    return ThemeResponse(theme=theme)


# Import / export ---------------------------------------------------------------


def export_service(store: CommandStore) -> tuple[dict[str, Any], str]:
    snapshot = store.export_snapshot()
    return snapshot.to_dict(), snapshot.backup_filename()


def import_service(store: CommandStore, payload: Mapping[str, Any]) -> ImportResponse:
    try:
        result = store.import_merge(payload)
    except CommandBoxError as exc:
        raise to_http_exception(exc) from exc
    return ImportResponse(**result.to_dict())


def reset_service(store: CommandStore) -> StatsResponse:
    store.reset_all()
    return stats_service(store)


__all__ = [
    "PERSISTENCE_WARNING_HEADER",
    "add_command_service",
    "create_folder_service",
    "delete_command_service",
    "delete_folder_service",
    "export_service",
    "get_command_service",
    "get_settings_service",
    "get_theme_service",
    "import_service",
    "list_commands_service",
    "list_folders_service",
    "move_command_service",
    "persistence_warning",
    "rename_folder_service",
    "reorder_commands_service",
    "reset_service",
    "stats_service",
    "to_http_exception",
    "update_command_service",
    "update_settings_service",
    "update_theme_service",
    "use_command_service",
]
