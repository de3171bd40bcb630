import json

import pytest

from commandbox.cli import main, parse_args


@pytest.fixture
def cli(tmp_path, monkeypatch):
    monkeypatch.delenv("COMMANDBOX_KEY_PREFIX", raising=False)
    data_dir = tmp_path / "data"

    def _run(*args):
        with pytest.raises(SystemExit) as excinfo:
            main(["--backend", "file", "--data-dir", str(data_dir), *args])
        return excinfo.value.code

    return _run


def test_parse_args_defaults():
    args = parse_args(["list"])

    assert args.action == "list"
    assert args.query == ""
    assert args.folder_id is None
    assert args.backend is None


def test_add_list_and_use(cli, capsys):
    assert cli("add", "echo hello\necho world") == 0
    assert "Added" in capsys.readouterr().out

    assert cli("list", "HELLO", "--json") == 0
    listed = json.loads(capsys.readouterr().out)
    assert [item["name"] for item in listed] == ["echo hello"]

    assert cli("use", listed[0]["id"]) == 0
    assert capsys.readouterr().out.strip() == "echo hello\necho world"

    assert cli("list", "--json") == 0
    assert json.loads(capsys.readouterr().out)[0]["useCount"] == 1


def test_folders_and_stats(cli, capsys):
    cli("mkdir", "Ops")
    cli("folders")
    out = capsys.readouterr().out
    assert "All Commands" in out
    assert "Ops" in out

    cli("stats")
    out = capsys.readouterr().out
    assert "Commands: 0" in out
    assert "Folders: 1" in out


def test_unknown_command_reports_error(cli, capsys):
    assert cli("use", "cmd_missing") == 1
    assert "Unknown command id: cmd_missing" in capsys.readouterr().err


def test_duplicate_folder_reports_error(cli, capsys):
    cli("mkdir", "Ops")

    assert cli("mkdir", "Ops") == 1
    assert "already exists" in capsys.readouterr().err


def test_reset_requires_confirmation(cli, capsys):
    cli("add", "ls")

    assert cli("reset") == 1
    assert cli("reset", "--yes") == 0
    capsys.readouterr()

    cli("stats")
    assert "Commands: 0" in capsys.readouterr().out


def test_export_then_import(cli, tmp_path, capsys):
    backup = tmp_path / "backup.json"
    cli("mkdir", "Ops")
    cli("add", "kubectl get pods", "--name", "pods")

    assert cli("export", "--output", str(backup)) == 0
    data = json.loads(backup.read_text(encoding="utf-8"))
    assert data["version"] == "3.0.0"
    capsys.readouterr()

    assert cli("import", str(backup)) == 0
    out = capsys.readouterr().out
    assert "Imported 0 folders, 0 commands" in out
    assert "skipped 1 duplicates" in out


def test_import_missing_file_reports_error(cli, tmp_path, capsys):
    assert cli("import", str(tmp_path / "missing.json")) == 1
    assert "Error:" in capsys.readouterr().err


def test_import_undecodable_file_reports_error(cli, tmp_path, capsys):
    backup = tmp_path / "backup.json"
    backup.write_bytes(b"\xff\xfe{}")

    assert cli("import", str(backup)) == 1
    assert "Error:" in capsys.readouterr().err


def test_undecodable_data_file_is_reported_not_fatal(cli, tmp_path, capsys):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "commandbox_commands_v3.json").write_bytes(b"\xff\xfe[not utf8")

    assert cli("stats") == 0
    captured = capsys.readouterr()
    assert "Commands: 0" in captured.out
    assert "Storage warnings" in captured.err
