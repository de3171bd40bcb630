"""FastMCP server exposing the command store as MCP tools."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from fastapi import HTTPException
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from ..api.model import CommandCreateRequest
from ..api.route import build_store
from ..api.service import (
    add_command_service,
    list_commands_service,
    use_command_service,
)
from ..persistence.config import StorageSettings
from ..store import CommandStore

logger = logging.getLogger("commandbox")

MAX_SEARCH_LIMIT = 100


class ServiceContext:
    """Lazy dependency container for MCP tool handlers."""

    def __init__(self, store_provider: Callable[[], CommandStore] | None = None) -> None:
        self._store_provider = store_provider
        self._settings: StorageSettings | None = None
        self._store: CommandStore | None = None

    @property
    def settings(self) -> StorageSettings:
        if self._settings is None:
            self._settings = StorageSettings.from_env()
        return self._settings

    def store(self) -> CommandStore:
        if self._store_provider is not None:
            return self._store_provider()
        if self._store is None:
            self._store = build_store(self.settings)
        return self._store


def _handle_http_exception(exc: HTTPException, *, default_message: str) -> ToolError:
    detail = exc.detail if isinstance(exc.detail, str) else None
    message = detail or default_message
    return ToolError(message)


def search_commands_tool(
    store: CommandStore,
    query: str = "",
    folder_id: str | None = None,
    limit: int = 20,
) -> Dict[str, Any]:
    normalized_limit = limit or 20
    if normalized_limit <= 0:
        raise ToolError("Limit must be a positive integer.")
    normalized_limit = min(normalized_limit, MAX_SEARCH_LIMIT)

    response = list_commands_service(store, query=query, folder_id=folder_id, limit=normalized_limit)
    return response.model_dump()


def add_command_tool(
    store: CommandStore,
    text: str,
    name: str | None = None,
    folder_id: str | None = None,
) -> Dict[str, Any]:
    if not text or not text.strip():
        raise ToolError("Command text is required.")
    try:
        response = add_command_service(
            store,
            CommandCreateRequest(text=text, name=name, folder_id=folder_id),
        )
    except HTTPException as exc:
        raise _handle_http_exception(exc, default_message="Adding command failed")
    return response.model_dump()


def use_command_tool(store: CommandStore, command_id: str) -> Dict[str, Any]:
    try:
        response = use_command_service(store, command_id)
    except HTTPException as exc:
        raise _handle_http_exception(exc, default_message="Using command failed")
    return {"id": response.id, "text": response.text, "use_count": response.use_count}


def create_server(services: ServiceContext | None = None) -> FastMCP:
    """Create a FastMCP server wired to the command store."""

    services = services or ServiceContext()
    server = FastMCP("Command Box MCP Server")

    @server.tool(
        name="search_commands",
        description=(
            "Search stored commands by case-insensitive substring of their name or text."
            " Leave `query` empty to list everything. `folder_id` restricts results to one"
            " folder; the `default` folder lists all commands."
        ),
        tags={"commands", "search"},
    )
    def search_commands(
        query: str = "",
        folder_id: str | None = None,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Return stored commands matching the query in display order."""
        return search_commands_tool(services.store(), query=query, folder_id=folder_id, limit=limit)

    @server.tool(
        name="add_command",
        description=(
            "Store a new reusable command. The name is derived from the first line of the"
            " text when omitted."
        ),
        tags={"commands"},
    )
    def add_command(
        text: str,
        name: str | None = None,
        folder_id: str | None = None,
    ) -> Dict[str, Any]:
        return add_command_tool(services.store(), text=text, name=name, folder_id=folder_id)

    @server.tool(
        name="use_command",
        description="Fetch a command's text for use and increment its use counter.",
        tags={"commands"},
    )
    def use_command(command_id: str) -> Dict[str, Any]:
        return use_command_tool(services.store(), command_id)

    return server


mcp = create_server()

__all__ = [
    "ServiceContext",
    "add_command_tool",
    "create_server",
    "mcp",
    "search_commands_tool",
    "use_command_tool",
]
