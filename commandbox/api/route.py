"""FastAPI routes exposing the command store."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from ..exception_handler import ErrorHandler
from ..persistence.config import StorageSettings, create_port
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
from .service import (
    PERSISTENCE_WARNING_HEADER,
    add_command_service,
    create_folder_service,
    delete_command_service,
    delete_folder_service,
    export_service,
    get_command_service,
    get_settings_service,
    get_theme_service,
    import_service,
    list_commands_service,
    list_folders_service,
    move_command_service,
    persistence_warning,
    rename_folder_service,
    reorder_commands_service,
    reset_service,
    stats_service,
    update_command_service,
    update_settings_service,
    update_theme_service,
    use_command_service,
)


def build_store(settings: StorageSettings) -> CommandStore:
    """Open a command store on the port selected by ``settings``."""

    return CommandStore.open(
        create_port(settings),
        keys=settings.keys,
        error_handler=ErrorHandler(settings.log_level),
    )


def store_for_state(state: Any, settings: StorageSettings) -> CommandStore:
    store = getattr(state, "store", None)
    if store is None:
        store = build_store(settings)
        state.store = store
    return store


def get_settings(request: Request) -> StorageSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, StorageSettings):
        raise RuntimeError("Storage settings have not been initialised")
    return settings


def get_store(
    request: Request,
    settings: StorageSettings = Depends(get_settings),
) -> CommandStore:
    return store_for_state(request.app.state, settings)


def _attach_warning(response: Response, store: CommandStore) -> None:
    warning = persistence_warning(store)
    if warning:
        response.headers[PERSISTENCE_WARNING_HEADER] = warning


router = APIRouter()


# Commands ----------------------------------------------------------------------


@router.get("/commands", response_model=CommandListResponse)
async def list_commands(
    query: str = Query("", description="Case-insensitive text matched against name or text"),
    folder_id: str | None = Query(None, description="Folder to filter by; defaults to the active folder"),
    limit: int | None = Query(None, ge=1, description="Maximum number of commands to return"),
    store: CommandStore = Depends(get_store),
) -> CommandListResponse:
    return list_commands_service(store, query=query, folder_id=folder_id, limit=limit)


@router.post("/commands", response_model=CommandResponse, status_code=status.HTTP_201_CREATED)
async def add_command(
    payload: CommandCreateRequest,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> CommandResponse:
    result = add_command_service(store, payload)
    _attach_warning(response, store)
    return result


@router.post("/commands/reorder", response_model=ReorderResponse)
async def reorder_commands(
    payload: ReorderRequest,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> ReorderResponse:
    result = reorder_commands_service(store, payload)
    _attach_warning(response, store)
    return result


@router.get("/commands/{command_id}", response_model=CommandResponse)
async def get_command(
    command_id: str,
    store: CommandStore = Depends(get_store),
) -> CommandResponse:
    return get_command_service(store, command_id)


@router.put("/commands/{command_id}", response_model=CommandResponse)
async def update_command(
    command_id: str,
    payload: CommandUpdateRequest,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> CommandResponse:
    result = update_command_service(store, command_id, payload)
    _attach_warning(response, store)
    return result


@router.delete("/commands/{command_id}", response_class=Response)
async def delete_command(
    command_id: str,
    store: CommandStore = Depends(get_store),
) -> Response:
    """Delete a command. Unknown ids are ignored."""

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    if delete_command_service(store, command_id):
        _attach_warning(response, store)
    return response


@router.post("/commands/{command_id}/use", response_model=CommandResponse)
async def use_command(
    command_id: str,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> CommandResponse:
    result = use_command_service(store, command_id)
    _attach_warning(response, store)
    return result


@router.post("/commands/{command_id}/move", response_model=CommandResponse)
async def move_command(
    command_id: str,
    payload: CommandMoveRequest,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> CommandResponse:
    result = move_command_service(store, command_id, payload)
    _attach_warning(response, store)
    return result


# Folders -----------------------------------------------------------------------


@router.get("/folders", response_model=List[FolderResponse])
async def list_folders(store: CommandStore = Depends(get_store)) -> List[FolderResponse]:
    return list_folders_service(store)


@router.post("/folders", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    payload: FolderCreateRequest,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> FolderResponse:
    result = create_folder_service(store, payload)
    _attach_warning(response, store)
    return result


@router.patch("/folders/{folder_id}", response_model=FolderResponse)
async def rename_folder(
    folder_id: str,
    payload: FolderRenameRequest,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> FolderResponse:
    result = rename_folder_service(store, folder_id, payload)
    _attach_warning(response, store)
    return result


@router.delete("/folders/{folder_id}", response_model=FolderDeleteResponse)
async def delete_folder(
    folder_id: str,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> FolderDeleteResponse:
    result = delete_folder_service(store, folder_id)
    if result.deleted:
        _attach_warning(response, store)
    return result


# Settings, stats and theme -----------------------------------------------------


@router.get("/settings", response_model=SettingsResponse)
async def get_view_settings(store: CommandStore = Depends(get_store)) -> SettingsResponse:
    return get_settings_service(store)


@router.put("/settings", response_model=SettingsResponse)
async def update_view_settings(
    payload: SettingsUpdateRequest,
    response: Response,
    store: CommandStore = Depends(get_store),
) -> SettingsResponse:
    result = update_settings_service(store, payload)
    _attach_warning(response, store)
    return result


@router.get("/stats", response_model=StatsResponse)
async def get_stats(store: CommandStore = Depends(get_store)) -> StatsResponse:
    return stats_service(store)


@router.get("/theme", response_model=ThemeResponse)
async def get_theme(store: CommandStore = Depends(get_store)) -> ThemeResponse:
    return get_theme_service(store)


@router.put("/theme", response_model=ThemeResponse)
async def update_theme(
    payload: ThemeRequest,
    store: CommandStore = Depends(get_store),
) -> ThemeResponse:
    return update_theme_service(store, payload)


# Import / export ---------------------------------------------------------------


@router.get("/export")
async def export_commands(store: CommandStore = Depends(get_store)) -> JSONResponse:
    content, filename = export_service(store)
    return JSONResponse(
        content=content,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_commands(
    response: Response,
    payload: Dict[str, Any] = Body(..., description="Exported snapshot with folders and commands"),
    store: CommandStore = Depends(get_store),
) -> ImportResponse:
    result = import_service(store, payload)
    _attach_warning(response, store)
    return result


@router.post("/reset", response_model=StatsResponse)
async def reset_commands(
    response: Response,
    store: CommandStore = Depends(get_store),
) -> StatsResponse:
    result = reset_service(store)
    _attach_warning(response, store)
    return result


__all__ = ["build_store", "get_settings", "get_store", "router", "store_for_state"]
