from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_FOLDER_ID = "default"
DEFAULT_FOLDER_NAME = "All Commands"

VIEW_GRID = "grid"
VIEW_LIST = "list"
VIEW_MODES = (VIEW_GRID, VIEW_LIST)

NAME_MAX_LENGTH = 30
NAME_ELLIPSIS = "..."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def derive_command_name(text: str) -> str:
    """Build a display name from the first line of a command's text."""
    first_line = text.split("\n")[0].strip()
    if len(first_line) > NAME_MAX_LENGTH:
        return first_line[:NAME_MAX_LENGTH] + NAME_ELLIPSIS
    return first_line


class Command(BaseModel):
    """A named, stored text snippet."""

    id: str
    name: str
    text: str = Field(validation_alias=AliasChoices("text", "command"))
    folder_id: str = Field(DEFAULT_FOLDER_ID, alias="folderId")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    use_count: int = Field(0, alias="useCount", ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Folder(BaseModel):
    """A named grouping of commands."""

    id: str
    name: str
    is_default: bool = Field(False, alias="isDefault")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ViewSettings(BaseModel):
    """Active folder and layout the presentation layer renders with."""

    current_folder_id: str = Field(DEFAULT_FOLDER_ID, alias="currentFolderId")
    view_mode: Literal["grid", "list"] = Field(VIEW_GRID, alias="viewMode")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def default_folder() -> Folder:
    return Folder(id=DEFAULT_FOLDER_ID, name=DEFAULT_FOLDER_NAME, is_default=True)


__all__ = [
    "Command",
    "DEFAULT_FOLDER_ID",
    "DEFAULT_FOLDER_NAME",
    "Folder",
    "NAME_MAX_LENGTH",
    "VIEW_GRID",
    "VIEW_LIST",
    "VIEW_MODES",
    "ViewSettings",
    "default_folder",
    "derive_command_name",
    "generate_id",
    "utc_now",
]
