"""JIRA Authentication Helpers

Basic-Auth header construction, write-request header normalization and
credential loading from the environment.
"""

import os
import base64
import logging
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"
ATLASSIAN_TOKEN_HEADER = "X-Atlassian-Token"
ATLASSIAN_TOKEN_VALUE = "no-check"


class CredentialsError(Exception):
    """Raised when JIRA credentials are not configured."""

    pass


def build_auth_headers(username: str, password: str) -> Dict[str, str]:
    """Build the Basic-Auth header map for a JIRA session.

    Credentials are not validated; empty values produce a well-formed header
    that JIRA will reject.
    """
    raw = f"{username}:{password}".encode("utf-8")
    return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}


def _with_write_headers(headers: Dict[str, str], content_type: str) -> Dict[str, str]:
    normalized = dict(headers)
    normalized["Content-Type"] = content_type
    normalized[ATLASSIAN_TOKEN_HEADER] = ATLASSIAN_TOKEN_VALUE
    return normalized


def comment_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Return a copy of ``headers`` ready for a JSON comment POST.

    ``Content-Type`` and ``X-Atlassian-Token`` are always overwritten; the
    input map is left untouched.
    """
    return _with_write_headers(headers, JSON_CONTENT_TYPE)


def upload_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Return a copy of ``headers`` ready for a multipart attachment POST."""
    return _with_write_headers(headers, MULTIPART_CONTENT_TYPE)


def get_api_token() -> Optional[str]:
    """Return the JIRA secret, preferring JIRA_API_TOKEN over JIRA_PASSWORD."""
    return os.environ.get("JIRA_API_TOKEN") or os.environ.get("JIRA_PASSWORD")


def get_jira_credentials() -> Tuple[str, str]:
    """Read JIRA credentials from environment variables.

    Returns:
        Tuple of (username, secret)

    Raises:
        CredentialsError: If the username or secret is missing
    """
    username = os.environ.get("JIRA_USERNAME")
    secret = get_api_token()

    missing = []
    if not username:
        missing.append("JIRA_USERNAME")
    if not secret:
        missing.append("JIRA_API_TOKEN (or JIRA_PASSWORD)")
    if missing:
        raise CredentialsError(f"Missing JIRA credentials: {', '.join(missing)}")

    logger.info(f"Loaded JIRA credentials for user '{username}'")
    return username, secret
