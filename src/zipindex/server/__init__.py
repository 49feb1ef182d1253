"""MCP server exposing a zipindex database."""

from zipindex.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
