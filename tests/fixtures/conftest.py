"""Pytest fixtures for JIRA CSV MCP Server tests.

Common fixtures for mocking the JIRA client and HTTP responses.
"""

import json

import pytest
import requests
from unittest.mock import MagicMock

from jira_csv_mcp.client import JiraClient
from . import jira_responses


def make_response(status_code=200, json_data=None, content=None, url=""):
    """Build a real requests.Response with a preloaded body."""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.encoding = "utf-8"
    if json_data is not None:
        content = json.dumps(json_data).encode("utf-8")
    response._content = content if content is not None else b""
    response._content_consumed = True
    return response


@pytest.fixture
def jira_client():
    """Real JiraClient with rate limiting disabled; patch its session in tests."""
    return JiraClient(
        base_url=jira_responses.JIRA_URL + "/",
        credentials=("jdoe", "s3cret"),
        timeout=5.0,
        requests_per_second=0
    )


@pytest.fixture
def mock_jira_client():
    """Mock JIRA client with common methods."""
    client = MagicMock(spec=JiraClient)
    client.get_attachments.return_value = []
    client.fetch_latest_csv.return_value = None
    return client


@pytest.fixture
def mcp_context(mock_jira_client, tmp_path):
    """Mock MCP context with JIRA client."""
    context = MagicMock()
    context.request_context.lifespan_context = {
        "jira_client": mock_jira_client,
        "download_dir": str(tmp_path),
    }
    return context


@pytest.fixture(autouse=True)
def reset_environment_for_tests(monkeypatch):
    """Reset environment variables for each test.

    This fixture automatically runs before each test to ensure
    a clean environment state.
    """
    monkeypatch.setenv("JIRA_URL", jira_responses.JIRA_URL)
    monkeypatch.setenv("JIRA_USERNAME", "test_user")
    monkeypatch.setenv("JIRA_API_TOKEN", "test_token")
    monkeypatch.delenv("JIRA_PASSWORD", raising=False)
    monkeypatch.delenv("JIRA_INTEGRATION", raising=False)
