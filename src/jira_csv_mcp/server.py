import os
import sys
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP, Context
from .auth import get_jira_credentials, CredentialsError
from .client import JiraClient
from .tools import issue_tools

# Configure basic logging FIRST
logging.basicConfig(level=logging.INFO, format='%(asctime)s - SERVER - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


@asynccontextmanager
async def jira_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """
    Manages the JiraClient lifecycle: reads connection settings and credentials
    from the environment and instantiates one client for the server.
    """
    jira_url = os.environ.get("JIRA_URL")
    if not jira_url:
        logger.error("JIRA_URL environment variable not set. Cannot connect to JIRA.")
        raise ValueError("JIRA_URL environment variable is required.")

    # Get SSL verification setting (default to True for security)
    verify_ssl = os.environ.get("JIRA_VERIFY_SSL", "true").lower() in ("true", "1", "yes")
    logger.info(f"SSL verification {'enabled' if verify_ssl else 'disabled'}")

    timeout = _env_float("JIRA_TIMEOUT", 30.0)
    requests_per_second = _env_float("JIRA_REQUESTS_PER_SECOND", 10.0)
    download_dir = os.environ.get("JIRA_DOWNLOAD_DIR", ".")

    try:
        logger.info("Attempting to retrieve JIRA credentials...")
        credentials = get_jira_credentials()

        jira_client = JiraClient(
            base_url=jira_url,
            credentials=credentials,
            timeout=timeout,
            requests_per_second=requests_per_second,
            verify_ssl=verify_ssl
        )
        logger.info(f"Successfully configured JiraClient for {jira_url}")

        yield {"jira_client": jira_client, "download_dir": download_dir}

    except CredentialsError as e:
        logger.error(f"Failed to obtain JIRA credentials: {e}")
        raise
    finally:
        logger.info("JIRA lifespan context manager exiting.")


# Instantiate the FastMCP server with the lifespan manager
mcp = FastMCP(
    "JIRA CSV Server",
    lifespan=jira_lifespan,
)

# --- Tool Implementations ---

@mcp.tool()
async def get_jira_attachments(issue_id: str, ctx: Context) -> list[dict]:
    """
    Lists all attachments on a JIRA issue.

    Args:
        issue_id: Issue key or id (e.g., "PROJ-123").

    Returns:
        A list of attachment dictionaries (id, filename, created, content, mimeType, size).
    """
    logger.info(f"Executing get_jira_attachments tool for issue: {issue_id}")
    return await issue_tools.jira_get_attachments(ctx, issue_id)


@mcp.tool()
async def fetch_latest_jira_csv(issue_id: str, ctx: Context, suffix_only: bool = False) -> dict:
    """
    Finds the most recently created CSV attachment on a JIRA issue.

    Args:
        issue_id: Issue key or id.
        suffix_only: Only match names ending in ".csv" instead of any name containing "csv".

    Returns:
        {"found": bool, "attachment": dict or null}
    """
    logger.info(f"Executing fetch_latest_jira_csv tool for issue: {issue_id}")
    return await issue_tools.jira_fetch_latest_csv(ctx, issue_id, suffix_only=suffix_only)


@mcp.tool()
async def download_latest_jira_csv(
    issue_id: str,
    ctx: Context,
    directory: Optional[str] = None,
    delete_after_read: bool = False,
    suffix_only: bool = False
) -> dict:
    """
    Downloads the latest CSV attachment on a JIRA issue and returns its rows.

    Args:
        issue_id: Issue key or id.
        directory: Local directory for the download (defaults to JIRA_DOWNLOAD_DIR).
        delete_after_read: Delete the local copy after parsing.
        suffix_only: Only match names ending in ".csv" instead of any name containing "csv".

    Returns:
        {"found", "attachment", "local_file", "rows"}
    """
    logger.info(f"Executing download_latest_jira_csv tool for issue: {issue_id}")
    return await issue_tools.jira_download_latest_csv(
        ctx, issue_id, directory=directory, delete_after_read=delete_after_read, suffix_only=suffix_only
    )


@mcp.tool()
async def add_jira_comment(issue_id: str, comment: str, ctx: Context) -> dict:
    """
    Posts a comment on a JIRA issue.

    Returns:
        {"status_code": int, "ok": bool, "comment": dict or null}
    """
    logger.info(f"Executing add_jira_comment tool for issue: {issue_id}")
    return await issue_tools.jira_add_comment(ctx, issue_id, comment)


@mcp.tool()
async def upload_jira_attachment(issue_id: str, file_path: str, ctx: Context) -> list[dict]:
    """
    Uploads a local file as an attachment on a JIRA issue.

    Returns:
        The attachment records created by JIRA.
    """
    logger.info(f"Executing upload_jira_attachment tool for issue: {issue_id}")
    return await issue_tools.jira_upload_attachment(ctx, issue_id, file_path)


@mcp.tool()
async def read_local_csv(filename: str, ctx: Context) -> list[dict]:
    """
    Reads a local CSV file into a list of row dictionaries keyed by the header row.
    """
    logger.info(f"Executing read_local_csv tool for file: {filename}")
    return await issue_tools.jira_read_local_csv(ctx, filename)


@mcp.tool()
async def delete_local_file(filename: str, ctx: Context) -> dict:
    """
    Permanently deletes a local file.
    """
    logger.info(f"Executing delete_local_file tool for file: {filename}")
    return await issue_tools.jira_delete_local_file(ctx, filename)


def main():
    """Entry point for the jira-csv-mcp script."""
    logger.info("Starting JIRA CSV MCP server...")

    if not os.environ.get("JIRA_URL"):
        logger.error("JIRA_URL environment variable is not set.")
        print("\nERROR: JIRA_URL environment variable is not set.")
        print("Please set JIRA_URL, JIRA_USERNAME and JIRA_API_TOKEN (or JIRA_PASSWORD).")
        sys.exit(1)

    mcp.run()

if __name__ == "__main__":
    # This allows running the server directly with `python -m jira_csv_mcp.server`
    main()
