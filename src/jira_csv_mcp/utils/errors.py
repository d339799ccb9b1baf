"""JIRA CSV MCP Server Error Handling Utilities

Custom exception classes for JIRA API, parsing and local file operations.
"""

from typing import Optional, Dict, Any


class JiraError(Exception):
    """Base exception for all JIRA-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize JIRA error.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class TransportError(JiraError):
    """Raised when a request cannot be sent or JIRA answers with a non-2xx status."""

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class AuthenticationError(TransportError):
    """Raised when credentials are rejected.

    Corresponds to HTTP 401 Unauthorized responses.
    """

    pass


class PermissionError(TransportError):
    """Raised when the user may not see or change the issue.

    Corresponds to HTTP 403 Forbidden responses.
    """

    pass


class NotFoundError(TransportError):
    """Raised when the issue or attachment doesn't exist.

    Corresponds to HTTP 404 Not Found responses.
    """

    pass


class RateLimitError(TransportError):
    """Raised when JIRA throttles the caller.

    Corresponds to HTTP 429 Too Many Requests responses.
    """

    pass


class ServerError(TransportError):
    """Raised when JIRA returns a 5xx response."""

    pass


class ParseError(JiraError):
    """Raised when a JSON or CSV body is malformed or lacks expected fields."""

    pass


class FilesystemError(JiraError):
    """Raised when a local file cannot be opened, written or removed."""

    pass


def handle_http_error(status_code: int, response_text: str) -> TransportError:
    """Convert HTTP error response to appropriate exception.

    Args:
        status_code: HTTP status code
        response_text: Response body text

    Returns:
        Appropriate TransportError subclass instance
    """
    error_map = {
        401: AuthenticationError,
        403: PermissionError,
        404: NotFoundError,
        429: RateLimitError,
    }

    details = {"status_code": status_code, "response": response_text}

    if status_code in error_map:
        return error_map[status_code](f"HTTP {status_code}: {response_text}", details=details)

    if 500 <= status_code < 600:
        return ServerError(f"HTTP {status_code}: Server error - {response_text}", details=details)

    return TransportError(f"HTTP {status_code}: Unexpected error - {response_text}", details=details)
