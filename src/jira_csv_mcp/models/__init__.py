"""JIRA CSV MCP Server Data Models

This package contains Pydantic models for JIRA entities.
"""

__all__ = [
    "attachment",
]
