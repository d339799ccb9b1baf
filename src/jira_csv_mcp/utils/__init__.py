"""JIRA CSV MCP Server Utilities

This package contains utility modules for the JIRA CSV MCP server.
"""

__all__ = [
    "errors",
    "rate_limit",
]
