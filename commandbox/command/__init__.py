"""Entity models for stored commands, folders and view settings."""

from .model import (
    DEFAULT_FOLDER_ID,
    DEFAULT_FOLDER_NAME,
    VIEW_GRID,
    VIEW_LIST,
    VIEW_MODES,
    Command,
    Folder,
    ViewSettings,
    default_folder,
    derive_command_name,
    generate_id,
    utc_now,
)

__all__ = [
    "Command",
    "DEFAULT_FOLDER_ID",
    "DEFAULT_FOLDER_NAME",
    "Folder",
    "VIEW_GRID",
    "VIEW_LIST",
    "VIEW_MODES",
    "ViewSettings",
    "default_folder",
    "derive_command_name",
    "generate_id",
    "utc_now",
]
