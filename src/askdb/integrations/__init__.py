"""Agent framework integrations.

Available integrations:
- askdb.integrations.mcp - MCP (Model Context Protocol) server
"""
