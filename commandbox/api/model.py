"""Pydantic models for the public API surface."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from ..command import Command, Folder, ViewSettings


class CommandCreateRequest(BaseModel):
    text: str = Field(..., description="Command text to store; may span multiple lines")
    name: str | None = Field(
        None, description="Display name; derived from the first line of text when blank"
    )
    folder_id: str | None = Field(
        None, description="Target folder; defaults to the active folder"
    )


class CommandUpdateRequest(BaseModel):
    text: str = Field(..., description="Replacement command text")
    name: str | None = Field(None, description="Replacement name; re-derived when blank")


class CommandMoveRequest(BaseModel):
    folder_id: str = Field(..., description="Folder to move the command into")


class ReorderRequest(BaseModel):
    dragged_id: str = Field(..., description="Command being moved")
    target_id: str = Field(..., description="Command the dragged one is placed before")


class ReorderResponse(BaseModel):
    moved: bool


class CommandResponse(BaseModel):
    id: str
    name: str
    text: str
    folder_id: str
    created_at: str
    updated_at: str
    use_count: int

    @classmethod
    def from_command(cls, command: Command) -> "CommandResponse":
        return cls(
            id=command.id,
            name=command.name,
            text=command.text,
            folder_id=command.folder_id,
            created_at=command.created_at.isoformat(),
            updated_at=command.updated_at.isoformat(),
            use_count=command.use_count,
        )


class CommandListResponse(BaseModel):
    query: str
    folder_id: str
    results: List[CommandResponse]


class FolderCreateRequest(BaseModel):
    name: str = Field(..., description="Unique folder name")


class FolderRenameRequest(BaseModel):
    name: str = Field(..., description="New unique folder name")


class FolderResponse(BaseModel):
    id: str
    name: str
    is_default: bool = False

    @classmethod
    def from_folder(cls, folder: Folder) -> "FolderResponse":
        return cls(id=folder.id, name=folder.name, is_default=folder.is_default)


class FolderDeleteResponse(BaseModel):
    deleted: bool
    moved_commands: int = 0


class SettingsUpdateRequest(BaseModel):
    current_folder_id: str | None = Field(None, description="Folder to make active")
    view_mode: Literal["grid", "list"] | None = Field(None, description="Layout to render with")


class SettingsResponse(BaseModel):
    current_folder_id: str
    view_mode: str

    @classmethod
    def from_settings(cls, settings: ViewSettings) -> "SettingsResponse":
        return cls(current_folder_id=settings.current_folder_id, view_mode=settings.view_mode)


class StatsResponse(BaseModel):
    total_commands: int
    total_folders: int


class ImportResponse(BaseModel):
    folders_imported: int
    commands_imported: int
    commands_skipped: int


class ThemeRequest(BaseModel):
    theme: Literal["light", "dark"]


class ThemeResponse(BaseModel):
    theme: str


__all__ = [
    "CommandCreateRequest",
    "CommandListResponse",
    "CommandMoveRequest",
    "CommandResponse",
    "CommandUpdateRequest",
    "FolderCreateRequest",
    "FolderDeleteResponse",
    "FolderRenameRequest",
    "FolderResponse",
    "ImportResponse",
    "ReorderRequest",
    "ReorderResponse",
    "SettingsResponse",
    "SettingsUpdateRequest",
    "StatsResponse",
    "ThemeRequest",
    "ThemeResponse",
]
