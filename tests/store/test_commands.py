import pytest

from commandbox.command import DEFAULT_FOLDER_ID
from commandbox.errors import NotFoundError, ValidationError


def test_add_command_is_found_once_by_empty_search(store):
    command = store.add_command("ls -la", name="List files")

    results = list(store.search("", DEFAULT_FOLDER_ID))

    assert [item.id for item in results] == [command.id]
    assert results[0].use_count == 0
    assert results[0].created_at == results[0].updated_at
    assert results[0].folder_id == DEFAULT_FOLDER_ID


def test_add_command_derives_name_from_first_line(store):
    short = store.add_command("echo hi")
    multi = store.add_command("  git status  \ngit diff")
    long = store.add_command("x" * 45)

    assert short.name == "echo hi"
    assert multi.name == "git status"
    assert long.name == "x" * 30 + "..."


def test_add_command_keeps_explicit_name_and_trims_text(store):
    command = store.add_command("  docker ps  ", name="  Containers ")

    assert command.name == "Containers"
    assert command.text == "docker ps"


def test_add_command_rejects_blank_text(store):
    with pytest.raises(ValidationError):
        store.add_command("   \n  ")

    assert store.commands == []


def test_add_command_rejects_unknown_folder(store):
    with pytest.raises(NotFoundError):
        store.add_command("echo hi", folder_id="folder_missing")

    assert store.commands == []


def test_add_command_defaults_to_active_folder(store):
    folder = store.create_folder("Ops")
    store.switch_folder(folder.id)

    command = store.add_command("kubectl get pods")

    assert command.folder_id == folder.id


def test_update_command_changes_text_and_bumps_updated_at(store):
    folder = store.create_folder("Git")
    original = store.add_command("git log", name="Log", folder_id=folder.id)

    updated = store.update_command(original.id, "git log --oneline", name="Short log")

    assert updated.id == original.id
    assert updated.folder_id == folder.id
    assert updated.name == "Short log"
    assert updated.text == "git log --oneline"
    assert updated.created_at == original.created_at
    assert updated.updated_at > original.updated_at


def test_update_command_rederives_blank_name(store):
    original = store.add_command("git log", name="Log")

    updated = store.update_command(original.id, "git fetch --all", name="  ")

    assert updated.name == "git fetch --all"


def test_update_command_errors_leave_state_unchanged(store):
    original = store.add_command("git log", name="Log")

    with pytest.raises(NotFoundError):
        store.update_command("cmd_missing", "anything")
    with pytest.raises(ValidationError):
        store.update_command(original.id, "  ")

    assert store.get_command(original.id) == original


def test_delete_command_is_idempotent(store):
    command = store.add_command("echo hi")

    assert store.delete_command(command.id) is True
    assert store.delete_command(command.id) is False
    assert store.commands == []


def test_record_use_increments_counter(store):
    command = store.add_command("echo hi")

    store.record_use(command.id)
    used = store.record_use(command.id)

    assert used.use_count == 2
    assert used.updated_at > command.updated_at
    with pytest.raises(NotFoundError):
        store.record_use("cmd_missing")


def test_move_to_folder(store):
    folder = store.create_folder("Ops")
    command = store.add_command("uptime")

    moved = store.move_to_folder(command.id, folder.id)
    again = store.move_to_folder(command.id, folder.id)

    assert moved.folder_id == folder.id
    assert moved.updated_at > command.updated_at
    assert again.updated_at == moved.updated_at


def test_move_to_folder_requires_existing_targets(store):
    command = store.add_command("uptime")

    with pytest.raises(NotFoundError):
        store.move_to_folder("cmd_missing", DEFAULT_FOLDER_ID)
    with pytest.raises(NotFoundError):
        store.move_to_folder(command.id, "folder_missing")

    assert store.get_command(command.id).folder_id == DEFAULT_FOLDER_ID


def test_reorder_moves_dragged_before_target(store):
    a = store.add_command("a")
    b = store.add_command("b")
    c = store.add_command("c")

    assert store.reorder(c.id, a.id) is True
    assert [command.id for command in store.commands] == [c.id, a.id, b.id]

    assert store.reorder(c.id, b.id) is True
    assert [command.id for command in store.commands] == [a.id, c.id, b.id]


def test_reorder_ignores_unknown_ids(store):
    a = store.add_command("a")
    b = store.add_command("b")

    assert store.reorder(a.id, "cmd_missing") is False
    assert store.reorder("cmd_missing", b.id) is False
    assert store.reorder(a.id, a.id) is False
    assert [command.id for command in store.commands] == [a.id, b.id]


def test_reorder_keeps_folder_membership(store):
    folder = store.create_folder("Ops")
    a = store.add_command("a", folder_id=folder.id)
    b = store.add_command("b")

    store.reorder(b.id, a.id)

    assert store.get_command(a.id).folder_id == folder.id
    assert store.get_command(b.id).folder_id == DEFAULT_FOLDER_ID


def test_search_matches_name_or_text_case_insensitively(store):
    by_name = store.add_command("systemctl restart nginx", name="Restart WEB")
    by_text = store.add_command("tail -f /var/log/NGINX/error.log", name="Logs")
    store.add_command("df -h", name="Disk")

    assert store.search("web", DEFAULT_FOLDER_ID).ids() == [by_name.id]
    assert store.search("nginx", DEFAULT_FOLDER_ID).ids() == [by_name.id, by_text.id]


def test_search_filters_by_folder_before_query(store):
    ops = store.create_folder("Ops")
    inside = store.add_command("echo ops", folder_id=ops.id)
    outside = store.add_command("echo default")

    assert store.search("echo", ops.id).ids() == [inside.id]
    assert store.search("echo", DEFAULT_FOLDER_ID).ids() == [inside.id, outside.id]
    assert store.search("", "folder_missing").ids() == []


def test_search_uses_active_folder_by_default(store):
    ops = store.create_folder("Ops")
    inside = store.add_command("echo ops", folder_id=ops.id)
    store.add_command("echo default")
    store.switch_folder(ops.id)

    assert store.search().ids() == [inside.id]


def test_search_view_is_lazy_and_restartable(store):
    first = store.add_command("echo one")
    view = store.search("echo", DEFAULT_FOLDER_ID)

    assert view.ids() == [first.id]
    second = store.add_command("echo two")
    assert view.ids() == [first.id, second.id]
    assert view.ids() == [first.id, second.id]


def test_search_results_are_copies(store):
    command = store.add_command("echo hi")

    result = next(iter(store.search()))
    result.text = "rm -rf /"

    assert store.get_command(command.id).text == "echo hi"


def test_end_to_end_folder_workflow(store):
    command = store.add_command("echo hi")
    assert command.name == "echo hi"

    ops = store.create_folder("Ops")
    assert len(store.folders) == 2

    moved = store.move_to_folder(command.id, ops.id)
    assert moved.folder_id == ops.id

    assert store.search("", ops.id).ids() == [command.id]
