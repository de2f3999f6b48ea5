"""ArchTrace MCP server: exposes model analysis as tools for AI agents."""

from archtrace.mcp.server import mcp, run_server

__all__ = ["mcp", "run_server"]
