from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from .api.route import build_store
from .command import Command, VIEW_MODES
from .errors import CommandBoxError
from .persistence.config import BACKENDS, StorageSettings
from .store import CommandStore

logger = logging.getLogger("commandbox")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="commandbox",
        description="Store, organize and search reusable command snippets",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Override storage backend (defaults to COMMANDBOX_BACKEND env variable)",
    )
    parser.add_argument(
        "--data-dir",
        dest="data_dir",
        default=None,
        help="Override data directory for the file backend (defaults to COMMANDBOX_DATA_DIR)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="action", required=True)

    add = sub.add_parser("add", help="Store a new command")
    add.add_argument("text", help="Command text; use '-' to read it from stdin")
    add.add_argument("--name", "-n", default=None, help="Display name (default: first line of text)")
    add.add_argument("--folder", "-f", dest="folder_id", default=None, help="Target folder id")

    lst = sub.add_parser("list", help="List or search commands")
    lst.add_argument("query", nargs="?", default="", help="Case-insensitive text to match")
    lst.add_argument("--folder", "-f", dest="folder_id", default=None, help="Folder id to filter by")
    lst.add_argument("--json", action="store_true", help="Print results as JSON")

    use = sub.add_parser("use", help="Print a command's text and count the use")
    use.add_argument("command_id")

    edit = sub.add_parser("edit", help="Replace a command's text and name")
    edit.add_argument("command_id")
    edit.add_argument("text", help="New command text; use '-' to read it from stdin")
    edit.add_argument("--name", "-n", default=None, help="New display name")

    rm = sub.add_parser("rm", help="Delete a command")
    rm.add_argument("command_id")

    mv = sub.add_parser("mv", help="Move a command to another folder")
    mv.add_argument("command_id")
    mv.add_argument("folder_id")

    order = sub.add_parser("reorder", help="Place a command before another one")
    order.add_argument("dragged_id")
    order.add_argument("target_id")

    sub.add_parser("folders", help="List folders")

    mkdir = sub.add_parser("mkdir", help="Create a folder")
    mkdir.add_argument("name")

    rename = sub.add_parser("rename-folder", help="Rename a folder")
    rename.add_argument("folder_id")
    rename.add_argument("name")

    rmdir = sub.add_parser("rmdir", help="Delete a folder, moving its commands to the default folder")
    rmdir.add_argument("folder_id")

    switch = sub.add_parser("switch", help="Change the active folder or view mode")
    switch.add_argument("--folder", "-f", dest="folder_id", default=None, help="Folder to make active")
    switch.add_argument("--view", choices=VIEW_MODES, default=None, help="Layout to render with")

    export = sub.add_parser("export", help="Write all folders and commands to a JSON file")
    export.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output file path (default: command-manager-backup-<date>.json, '-' for stdout)",
    )

    imp = sub.add_parser("import", help="Merge an exported JSON file into the store")
    imp.add_argument("path", help="Path to an exported JSON file")

    reset = sub.add_parser("reset", help="Delete every command and folder")
    reset.add_argument("--yes", action="store_true", help="Confirm the reset")

    sub.add_parser("stats", help="Show command and folder counts")

    return parser.parse_args(argv)


def _read_text(value: str) -> str:
    if value == "-":
        return sys.stdin.read()
    return value


def _format_command(command: Command) -> str:
    return f"{command.id}  [{command.folder_id}]  {command.name}  (used {command.use_count}x)"


def run(args: argparse.Namespace, store: CommandStore) -> int:
    action = args.action

    if action == "add":
        command = store.add_command(_read_text(args.text), name=args.name, folder_id=args.folder_id)
        print(f"✅ Added {command.id}: {command.name}")
    elif action == "list":
        commands = list(store.search(args.query, args.folder_id))
        if args.json:
            print(json.dumps([command.to_dict() for command in commands], indent=2, ensure_ascii=False))
        elif not commands:
            print("No commands found", file=sys.stderr)
        else:
            for command in commands:
                print(_format_command(command))
    elif action == "use":
        command = store.record_use(args.command_id)
        print(command.text)
    elif action == "edit":
        command = store.update_command(args.command_id, _read_text(args.text), name=args.name)
        print(f"✅ Updated {command.id}: {command.name}")
    elif action == "rm":
        if store.delete_command(args.command_id):
            print(f"✅ Deleted {args.command_id}")
        else:
            print(f"Nothing to delete for {args.command_id}", file=sys.stderr)
    elif action == "mv":
        command = store.move_to_folder(args.command_id, args.folder_id)
        print(f"✅ Moved {command.id} to {command.folder_id}")
    elif action == "reorder":
        if not store.reorder(args.dragged_id, args.target_id):
            print("Nothing to reorder", file=sys.stderr)
    elif action == "folders":
        current = store.view_settings.current_folder_id
        for folder in store.folders:
            marker = "*" if folder.id == current else " "
            count = sum(1 for _ in store.search("", folder.id))
            print(f"{marker} {folder.id}  {folder.name}  ({count})")
    elif action == "mkdir":
        folder = store.create_folder(args.name)
        print(f"✅ Created folder {folder.id}: {folder.name}")
    elif action == "rename-folder":
        folder = store.rename_folder(args.folder_id, args.name)
        print(f"✅ Folder {folder.id} is named {folder.name}")
    elif action == "rmdir":
        moved = store.delete_folder(args.folder_id)
        if moved is None:
            print(f"Nothing to delete for {args.folder_id}", file=sys.stderr)
        else:
            print(f"✅ Deleted folder {args.folder_id}, moved {moved} commands to the default folder")
    elif action == "switch":
        if args.folder_id:
            store.switch_folder(args.folder_id)
        if args.view:
            store.switch_view(args.view)
        settings = store.view_settings
        print(f"Active folder: {settings.current_folder_id}, view: {settings.view_mode}")
    elif action == "export":
        snapshot = store.export_snapshot()
        output_text = snapshot.to_json()
        if args.output == "-":
            print(output_text)
        else:
            output_path = Path(args.output or snapshot.backup_filename())
            output_path.write_text(output_text, encoding="utf-8")
            print(f"✅ Exported {len(snapshot.commands)} commands to: {output_path}")
    elif action == "import":
        raw = Path(args.path).read_text(encoding="utf-8")
        result = store.import_merge(raw)
        message = f"✅ Imported {result.folders_imported} folders, {result.commands_imported} commands"
        if result.commands_skipped:
            message += f", skipped {result.commands_skipped} duplicates"
        print(message)
    elif action == "reset":
        if not args.yes:
            print("Refusing to reset without --yes", file=sys.stderr)
            return 1
        store.reset_all()
        print("✅ All data reset")
    elif action == "stats":
        stats = store.stats()
        print(f"Commands: {stats.total_commands}")
        print(f"Folders: {stats.total_folders}")

    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)

    settings = StorageSettings.from_env()
    if args.backend:
        settings.backend = args.backend
    if args.data_dir:
        settings.data_dir = args.data_dir
    if args.verbose:
        settings.log_level = "DEBUG"

    store = build_store(settings)

    try:
        code = run(args, store)
    except CommandBoxError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    report = store.error_handler.format_error_report()
    if report:
        print(f"\n⚠️  {report}", file=sys.stderr)
    sys.exit(code)


if __name__ == "__main__":
    main()
