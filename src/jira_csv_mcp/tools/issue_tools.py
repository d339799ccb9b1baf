"""JIRA CSV MCP Server - Issue Tools

This module contains the MCP tools for a JIRA issue's CSV workflow:
- Attachment listing and latest-CSV selection
- Download, parse and clean up of the selected CSV
- Comments and attachment upload
- Local CSV file access
"""
from typing import Optional, Dict, Any, List
import logging
from mcp.server.fastmcp import Context

from ..storage import read_csv_rows, remove_file

logger = logging.getLogger(__name__)


def _jira_client(ctx: Context):
    return ctx.request_context.lifespan_context["jira_client"]


# ============================================================================
# Attachment discovery
# ============================================================================

async def jira_get_attachments(ctx: Context, issue_id: str) -> List[Dict[str, Any]]:
    """List every attachment on an issue.

    Args:
        ctx: MCP context with JIRA client
        issue_id: Issue key or numeric id (e.g., "PROJ-123")

    Returns:
        Attachment dicts in the order JIRA returned them
    """
    logger.info(f"Listing attachments: issue={issue_id}")
    attachments = _jira_client(ctx).get_attachments(issue_id)
    return [a.to_dict() for a in attachments]


async def jira_fetch_latest_csv(
    ctx: Context,
    issue_id: str,
    suffix_only: bool = False
) -> Dict[str, Any]:
    """Find the most recently created CSV attachment on an issue.

    Args:
        ctx: MCP context with JIRA client
        issue_id: Issue key or numeric id
        suffix_only: Only consider names ending in ".csv" (default: substring match)

    Returns:
        {"found": bool, "attachment": dict or None}
    """
    logger.info(f"Fetching latest CSV: issue={issue_id}, suffix_only={suffix_only}")
    latest = _jira_client(ctx).fetch_latest_csv(issue_id, suffix_only=suffix_only)
    return {
        "found": latest is not None,
        "attachment": latest.to_dict() if latest else None
    }


async def jira_download_latest_csv(
    ctx: Context,
    issue_id: str,
    directory: Optional[str] = None,
    delete_after_read: bool = False,
    suffix_only: bool = False
) -> Dict[str, Any]:
    """Download the latest CSV attachment and parse its rows.

    A downloaded file is not removed if parsing fails.

    Args:
        ctx: MCP context with JIRA client
        issue_id: Issue key or numeric id
        directory: Download directory (default: lifespan download_dir or ".")
        delete_after_read: Remove the local copy once rows are parsed
        suffix_only: Only consider names ending in ".csv" (default: substring match)

    Returns:
        {"found", "attachment", "local_file", "rows"}; local_file and rows are
        None when the issue has no CSV attachment
    """
    jira_client = _jira_client(ctx)
    latest = jira_client.fetch_latest_csv(issue_id, suffix_only=suffix_only)
    if latest is None:
        return {"found": False, "attachment": None, "local_file": None, "rows": None}

    if directory is None:
        directory = ctx.request_context.lifespan_context.get("download_dir", ".")

    local_file = jira_client.download_attachment(latest.content, latest.filename, directory=directory)
    rows = read_csv_rows(local_file)
    logger.info(f"Parsed {len(rows)} rows from {latest.filename}")

    if delete_after_read:
        remove_file(local_file)

    return {
        "found": True,
        "attachment": latest.to_dict(),
        "local_file": None if delete_after_read else local_file,
        "rows": rows
    }


# ============================================================================
# Writes
# ============================================================================

async def jira_add_comment(ctx: Context, issue_id: str, comment: str) -> Dict[str, Any]:
    """Post a plain-text comment on an issue.

    Returns:
        {"status_code", "ok", "comment"}; comment holds JIRA's JSON reply when
        the post succeeded
    """
    logger.info(f"Adding comment: issue={issue_id}, length={len(comment)}")
    response = _jira_client(ctx).post_comment(issue_id, comment)

    result = {"status_code": response.status_code, "ok": response.ok, "comment": None}
    if response.ok and response.content:
        try:
            result["comment"] = response.json()
        except ValueError:
            logger.warning(f"Comment response for {issue_id} is not JSON")
    return result


async def jira_upload_attachment(ctx: Context, issue_id: str, file_path: str) -> List[Dict[str, Any]]:
    """Attach a local file to an issue."""
    logger.info(f"Uploading attachment: issue={issue_id}, file={file_path}")
    return _jira_client(ctx).upload_attachment(issue_id, file_path)


# ============================================================================
# Local files
# ============================================================================

async def jira_read_local_csv(ctx: Context, filename: str) -> List[Dict[str, str]]:
    """Read a previously downloaded CSV into row dicts."""
    return read_csv_rows(filename)


async def jira_delete_local_file(ctx: Context, filename: str) -> Dict[str, str]:
    """Permanently delete a local file. There is no confirmation step."""
    remove_file(filename)
    return {"deleted": filename}
