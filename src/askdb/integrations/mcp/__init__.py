"""MCP (Model Context Protocol) integration for askdb.

This module provides an MCP server that exposes the validator, the safety
limiter and the ask-database pipeline as tools for AI agents.

Example:
    # Run the MCP server
    python -m askdb.integrations.mcp.server --database postgresql://readonly@localhost/db --schema schema.json

    # Or via entry point (after pip install askdb[mcp])
    askdb-mcp --database postgresql://readonly@localhost/db --schema schema.json
"""

from askdb.integrations.mcp.server import create_server, mcp

__all__ = ["mcp", "create_server"]
