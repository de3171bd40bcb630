import json

import pytest
from fastapi import HTTPException, Response

from commandbox.api.model import (
    CommandCreateRequest,
    CommandMoveRequest,
    CommandUpdateRequest,
    FolderCreateRequest,
    FolderRenameRequest,
    ReorderRequest,
    SettingsUpdateRequest,
    ThemeRequest,
)
from commandbox.api.route import (
    add_command,
    create_folder,
    delete_command,
    delete_folder,
    export_commands,
    get_stats,
    get_theme,
    import_commands,
    list_commands,
    list_folders,
    move_command,
    rename_folder,
    reorder_commands,
    reset_commands,
    store_for_state,
    update_command,
    update_theme,
    update_view_settings,
    use_command,
)
from commandbox.api.server import create_app
from commandbox.api.service import PERSISTENCE_WARNING_HEADER
from commandbox.errors import PersistenceError
from commandbox.persistence import StorageSettings


class _BrokenPort:
    def read(self, key):
        return None

    def write(self, key, blob):
        raise PersistenceError("storage offline", key=key, operation="write")


async def _add(store, text, **kwargs):
    return await add_command(
        payload=CommandCreateRequest(text=text, **kwargs),
        response=Response(),
        store=store,
    )


@pytest.mark.asyncio
async def test_add_and_list_commands(store):
    created = await _add(store, "echo hi")

    listing = await list_commands(query="", folder_id=None, limit=None, store=store)

    assert created.name == "echo hi"
    assert created.use_count == 0
    assert [item.id for item in listing.results] == [created.id]
    assert listing.folder_id == "default"


@pytest.mark.asyncio
async def test_list_commands_applies_query_and_limit(store):
    await _add(store, "git status")
    await _add(store, "git log")
    await _add(store, "ls")

    listing = await list_commands(query="GIT", folder_id="default", limit=1, store=store)

    assert [item.text for item in listing.results] == ["git status"]
    assert listing.query == "GIT"


@pytest.mark.asyncio
async def test_add_command_maps_validation_error_to_422(store):
    with pytest.raises(HTTPException) as excinfo:
        await _add(store, "   ")

    assert excinfo.value.status_code == 422


@pytest.mark.asyncio
async def test_update_and_use_unknown_command_return_404(store):
    with pytest.raises(HTTPException) as excinfo:
        await use_command(command_id="cmd_missing", response=Response(), store=store)
    assert excinfo.value.status_code == 404

    with pytest.raises(HTTPException) as excinfo:
        await update_command(
            command_id="cmd_missing",
            payload=CommandUpdateRequest(text="echo"),
            response=Response(),
            store=store,
        )
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_use_move_and_reorder(store):
    first = await _add(store, "echo one")
    second = await _add(store, "echo two")
    folder = await create_folder(payload=FolderCreateRequest(name="Ops"), response=Response(), store=store)

    used = await use_command(command_id=first.id, response=Response(), store=store)
    moved = await move_command(
        command_id=first.id,
        payload=CommandMoveRequest(folder_id=folder.id),
        response=Response(),
        store=store,
    )
    reordered = await reorder_commands(
        payload=ReorderRequest(dragged_id=second.id, target_id=first.id),
        response=Response(),
        store=store,
    )

    assert used.use_count == 1
    assert moved.folder_id == folder.id
    assert reordered.moved is True
    assert [command.id for command in store.commands] == [second.id, first.id]


@pytest.mark.asyncio
async def test_delete_command_returns_no_content(store):
    created = await _add(store, "echo hi")

    response = await delete_command(command_id=created.id, store=store)
    again = await delete_command(command_id=created.id, store=store)

    assert response.status_code == 204
    assert again.status_code == 204
    assert store.commands == []


@pytest.mark.asyncio
async def test_folder_routes(store):
    work = await create_folder(payload=FolderCreateRequest(name="Work"), response=Response(), store=store)
    home = await create_folder(payload=FolderCreateRequest(name="Home"), response=Response(), store=store)

    with pytest.raises(HTTPException) as excinfo:
        await create_folder(payload=FolderCreateRequest(name="Work"), response=Response(), store=store)
    assert excinfo.value.status_code == 409

    with pytest.raises(HTTPException) as excinfo:
        await rename_folder(
            folder_id=home.id,
            payload=FolderRenameRequest(name="Work"),
            response=Response(),
            store=store,
        )
    assert excinfo.value.status_code == 409

    deleted = await delete_folder(folder_id=work.id, response=Response(), store=store)
    ignored = await delete_folder(folder_id="default", response=Response(), store=store)
    folders = await list_folders(store=store)

    assert deleted.deleted is True
    assert ignored.deleted is False
    assert [folder.name for folder in folders] == ["All Commands", "Home"]


@pytest.mark.asyncio
async def test_update_view_settings(store):
    folder = await create_folder(payload=FolderCreateRequest(name="Ops"), response=Response(), store=store)

    settings = await update_view_settings(
        payload=SettingsUpdateRequest(current_folder_id=folder.id, view_mode="list"),
        response=Response(),
        store=store,
    )

    assert settings.current_folder_id == folder.id
    assert settings.view_mode == "list"

    with pytest.raises(HTTPException) as excinfo:
        await update_view_settings(
            payload=SettingsUpdateRequest(current_folder_id="folder_missing"),
            response=Response(),
            store=store,
        )
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_export_import_and_reset(store, store_factory):
    await _add(store, "echo hi")
    await create_folder(payload=FolderCreateRequest(name="Ops"), response=Response(), store=store)

    exported = await export_commands(store=store)
    body = json.loads(exported.body)
    target = store_factory()
    imported = await import_commands(response=Response(), payload=body, store=target)
    stats = await get_stats(store=target)

    assert "command-manager-backup-" in exported.headers["content-disposition"]
    assert imported.folders_imported == 1
    assert imported.commands_imported == 1
    assert stats.total_commands == 1

    with pytest.raises(HTTPException) as excinfo:
        await import_commands(response=Response(), payload={"commands": []}, store=target)
    assert excinfo.value.status_code == 422

    reset = await reset_commands(response=Response(), store=target)
    assert reset.total_commands == 0
    assert reset.total_folders == 0


@pytest.mark.asyncio
async def test_theme_routes(store):
    assert (await get_theme(store=store)).theme == "light"

    updated = await update_theme(payload=ThemeRequest(theme="dark"), store=store)

    assert updated.theme == "dark"
    assert (await get_theme(store=store)).theme == "dark"


@pytest.mark.asyncio
async def test_persistence_failure_is_reported_as_warning(store_factory):
    store = store_factory(_BrokenPort())
    response = Response()

    created = await add_command(
        payload=CommandCreateRequest(text="echo hi"),
        response=response,
        store=store,
    )

    assert created.text == "echo hi"
    assert "storage offline" in response.headers[PERSISTENCE_WARNING_HEADER]
    assert len(store.commands) == 1


def test_create_app_shares_injected_store(store):
    app = create_app(store=store, settings=StorageSettings(backend="memory"))

    paths = {route.path for route in app.routes}

    assert app.state.store is store
    assert store_for_state(app.state, app.state.settings) is store
    assert {"/commands", "/folders", "/export", "/import", "/mcp"} <= paths


def test_store_for_state_builds_store_once():
    class _State:
        pass

    state = _State()
    settings = StorageSettings(backend="memory")

    first = store_for_state(state, settings)
    second = store_for_state(state, settings)

    assert first is second
