"""JIRA CSV MCP Server

Fetches, downloads and parses the latest CSV attachment of a JIRA issue, and
posts comments and attachments back to it.
"""

__version__ = "0.1.0"
