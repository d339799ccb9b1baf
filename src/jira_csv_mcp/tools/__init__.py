"""JIRA CSV MCP Server Tools

This package contains the MCP tool implementations for JIRA issues.
"""

__all__ = [
    "issue_tools",
]
