"""JIRA REST Client

Thin synchronous client over requests for the handful of JIRA endpoints the
CSV workflow needs:
- Issue metadata and attachment listing
- Latest-CSV selection and download
- Comment posting and attachment upload
"""

import os
import json
import logging
from typing import Optional, Dict, Any, List

import requests
from pydantic import ValidationError
from urllib3.filepost import encode_multipart_formdata

from .auth import build_auth_headers, comment_headers, upload_headers
from .models.attachment import Attachment
from .selection import filter_csv_attachments, select_latest
from .storage import random_local_filename
from .utils.rate_limit import RateLimiter
from .utils.errors import (
    handle_http_error,
    TransportError,
    ParseError,
    FilesystemError,
)

logger = logging.getLogger(__name__)

API_PATH = "rest/api/latest"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class JiraClient:
    """JIRA client authenticated with HTTP Basic credentials.

    The header map is built once and never mutated; write operations send
    normalized copies of it.
    """

    def __init__(
        self,
        base_url: str,
        credentials: tuple[str, str],
        timeout: float = 30.0,
        requests_per_second: float = 10.0,
        verify_ssl: bool = True
    ):
        """Initialize JIRA client.

        Args:
            base_url: JIRA instance URL (e.g., https://jira.example.com)
            credentials: Tuple of (username, password or API token)
            timeout: Per-request timeout in seconds (default: 30.0)
            requests_per_second: Rate limit, 0 disables it (default: 10.0)
            verify_ssl: Whether to verify SSL certificates (default: True)
        """
        username, password = credentials
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.headers = build_auth_headers(username, password)
        self.session = requests.Session()

        self.rate_limiter = RateLimiter(requests_per_second=requests_per_second)
        logger.info(
            f"Initialized JIRA client for {self.base_url} "
            f"(timeout: {timeout}s, SSL verify: {verify_ssl})"
        )

    def issue_url(self, issue_id: str, *parts: str) -> str:
        return "/".join([self.base_url, API_PATH, "issue", str(issue_id), *parts])

    def _send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        check_status: bool = True,
        **kwargs
    ) -> requests.Response:
        """Make a rate-limited HTTP request.

        Raises:
            TransportError: If the request fails, or on a non-2xx status when check_status is set
        """
        self.rate_limiter.acquire()

        kwargs.setdefault('timeout', self.timeout)
        kwargs['verify'] = self.verify_ssl
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(method, url, headers=headers or self.headers, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise TransportError(f"{method} {url} failed: {e}", details={"url": url}) from e

        if check_status and not response.ok:
            logger.error(f"{method} {url} returned HTTP {response.status_code}")
            raise handle_http_error(response.status_code, response.text)

        return response

    def get_issue(self, issue_id: str) -> Dict[str, Any]:
        """Fetch issue metadata.

        Raises:
            TransportError: On network failure or non-2xx status
            ParseError: If the body is not JSON
        """
        logger.info(f"Fetching issue {issue_id}")
        headers = dict(self.headers, Accept="application/json")
        response = self._send("GET", self.issue_url(issue_id), headers=headers)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(
                f"Issue {issue_id} response is not valid JSON: {e}",
                details={"issue": issue_id}
            ) from e

    def get_attachments(self, issue_id: str) -> List[Attachment]:
        """List the attachments on an issue, in server order.

        Raises:
            TransportError: On network failure or non-2xx status
            ParseError: If fields.attachment is missing or malformed
        """
        issue = self.get_issue(issue_id)

        try:
            raw_attachments = issue["fields"]["attachment"]
        except (KeyError, TypeError) as e:
            raise ParseError(
                f"Issue {issue_id} response has no fields.attachment",
                details={"issue": issue_id}
            ) from e

        if not isinstance(raw_attachments, list):
            raise ParseError(
                f"Issue {issue_id} fields.attachment is not a list",
                details={"issue": issue_id, "type": type(raw_attachments).__name__}
            )

        try:
            attachments = [Attachment.model_validate(a) for a in raw_attachments]
        except ValidationError as e:
            raise ParseError(
                f"Issue {issue_id} has a malformed attachment: {e}",
                details={"issue": issue_id}
            ) from e

        logger.info(f"Issue {issue_id} has {len(attachments)} attachment(s)")
        return attachments

    def fetch_latest_csv(self, issue_id: str, suffix_only: bool = False) -> Optional[Attachment]:
        """Return the most recently created CSV attachment, or None if there is none."""
        candidates = filter_csv_attachments(self.get_attachments(issue_id), suffix_only=suffix_only)
        latest = select_latest(candidates)

        if latest is None:
            logger.warning(f"No CSV attachments found on issue {issue_id}")
        else:
            logger.info(f"Latest CSV on issue {issue_id}: {latest.filename} (id={latest.id})")
        return latest

    def download_attachment(self, content_url: str, filename: str, directory: str = ".") -> str:
        """Stream an attachment to a randomized local filename.

        Args:
            content_url: Attachment's direct content URL
            filename: Original file name, kept as the local name's suffix
            directory: Target directory (default: current directory)

        Returns:
            Local path of the downloaded file

        Raises:
            TransportError: On network failure or non-2xx status
            FilesystemError: If the local file cannot be written
        """
        local_path = os.path.join(directory, random_local_filename(filename))
        logger.info(f"Downloading {content_url} to {local_path}")

        response = self._send("GET", content_url, stream=True)
        try:
            with open(local_path, "wb") as fh:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Download of {content_url} interrupted: {e}",
                details={"url": content_url, "file": local_path}
            ) from e
        except OSError as e:
            raise FilesystemError(
                f"Cannot write {local_path}: {e}",
                details={"file": local_path}
            ) from e
        finally:
            response.close()

        return local_path

    def post_comment(self, issue_id: str, comment: str) -> requests.Response:
        """Add a comment to an issue.

        The response is returned as-is; a non-2xx status is not raised and
        callers must check ``status_code`` themselves.

        Raises:
            TransportError: If the request cannot be sent
        """
        logger.info(f"Posting comment to issue {issue_id}")
        response = self._send(
            "POST",
            self.issue_url(issue_id, "comment"),
            headers=comment_headers(self.headers),
            data=json.dumps({"body": comment}),
            check_status=False
        )
        if not response.ok:
            logger.warning(f"Comment on issue {issue_id} returned HTTP {response.status_code}")
        return response

    def upload_attachment(self, issue_id: str, file_path: str) -> List[Dict[str, Any]]:
        """Attach a local file to an issue as multipart field ``file``.

        Returns:
            Attachment records created by JIRA

        Raises:
            FilesystemError: If the file cannot be opened
            TransportError: On network failure or non-2xx status
            ParseError: If the response is not JSON
        """
        try:
            with open(file_path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            raise FilesystemError(f"Cannot open {file_path}: {e}", details={"file": file_path}) from e

        file_name = os.path.basename(file_path)
        body, content_type = encode_multipart_formdata({"file": (file_name, data)})

        # the multipart marker gains the boundary of this particular body
        headers = upload_headers(self.headers)
        headers["Content-Type"] = content_type

        logger.info(f"Uploading {file_name} ({len(data)} bytes) to issue {issue_id}")
        response = self._send("POST", self.issue_url(issue_id, "attachments"), headers=headers, data=body)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(
                f"Upload response for issue {issue_id} is not valid JSON: {e}",
                details={"issue": issue_id}
            ) from e
