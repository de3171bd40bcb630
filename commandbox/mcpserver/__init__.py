"""MCP server exposing command store tools."""

from .server import ServiceContext, create_server, mcp

__all__ = ["ServiceContext", "create_server", "mcp"]
