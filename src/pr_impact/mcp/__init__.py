"""MCP server exposing the analyses to AI coding tools."""

from pr_impact.mcp.server import MCPServer

__all__ = ["MCPServer"]
