"""Unit tests for the JIRA issue MCP tools."""
import os
from unittest.mock import patch

import pytest
import requests

from jira_csv_mcp.models.attachment import Attachment
from jira_csv_mcp.tools.issue_tools import (
    jira_get_attachments,
    jira_fetch_latest_csv,
    jira_download_latest_csv,
    jira_add_comment,
    jira_upload_attachment,
    jira_read_local_csv,
    jira_delete_local_file,
)
from jira_csv_mcp.utils.errors import ParseError, FilesystemError
from fixtures import jira_responses
from fixtures.conftest import make_response


@pytest.fixture
def latest_csv():
    return Attachment.model_validate(jira_responses.MOCK_ATTACHMENT_CSV_NEW)


@pytest.mark.asyncio
async def test_get_attachments_returns_dicts(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.get_attachments.return_value = [
        Attachment.model_validate(jira_responses.MOCK_ATTACHMENT_TXT),
        Attachment.model_validate(jira_responses.MOCK_ATTACHMENT_CSV_OLD),
    ]

    result = await jira_get_attachments(mcp_context, issue_id="PROJ-123")

    mock_client.get_attachments.assert_called_once_with("PROJ-123")
    assert [a["filename"] for a in result] == ["notes.txt", "report-january.csv"]


@pytest.mark.asyncio
async def test_fetch_latest_csv_found(mcp_context, latest_csv):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.fetch_latest_csv.return_value = latest_csv

    result = await jira_fetch_latest_csv(mcp_context, issue_id="PROJ-123", suffix_only=True)

    mock_client.fetch_latest_csv.assert_called_once_with("PROJ-123", suffix_only=True)
    assert result["found"] is True
    assert result["attachment"]["filename"] == "report-february.csv"


@pytest.mark.asyncio
async def test_fetch_latest_csv_not_found(mcp_context):
    result = await jira_fetch_latest_csv(mcp_context, issue_id="PROJ-124")

    assert result == {"found": False, "attachment": None}


@pytest.mark.asyncio
async def test_download_latest_csv_pipeline(mcp_context, latest_csv, tmp_path):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.fetch_latest_csv.return_value = latest_csv
    local_file = tmp_path / "123-report-february.csv"
    local_file.write_bytes(jira_responses.MOCK_CSV_CONTENT)
    mock_client.download_attachment.return_value = str(local_file)

    result = await jira_download_latest_csv(mcp_context, issue_id="PROJ-123")

    mock_client.download_attachment.assert_called_once_with(
        latest_csv.content, "report-february.csv", directory=str(tmp_path)
    )
    assert result["found"] is True
    assert result["local_file"] == str(local_file)
    assert result["rows"] == [
        {"name": "alpha", "count": "1"},
        {"name": "beta", "count": "2"},
        {"name": "gamma", "count": "3"},
    ]
    assert local_file.exists()


@pytest.mark.asyncio
async def test_download_latest_csv_passes_suffix_only(mcp_context, latest_csv, tmp_path):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.fetch_latest_csv.return_value = latest_csv
    local_file = tmp_path / "321-report-february.csv"
    local_file.write_bytes(jira_responses.MOCK_CSV_CONTENT)
    mock_client.download_attachment.return_value = str(local_file)

    await jira_download_latest_csv(mcp_context, issue_id="PROJ-123", suffix_only=True)

    mock_client.fetch_latest_csv.assert_called_once_with("PROJ-123", suffix_only=True)


@pytest.mark.asyncio
async def test_download_latest_csv_suffix_only_skips_loose_matches(jira_client, tmp_path):
    """A newer 'foo.csvold' is ignored when only real .csv names are wanted."""
    from unittest.mock import MagicMock

    issue = jira_responses.issue_payload([
        jira_responses.attachment_payload(1, "export.csv", "2024-01-01T00:00:00.000+0000"),
        jira_responses.attachment_payload(2, "export.csvold", "2024-06-01T00:00:00.000+0000"),
    ])
    context = MagicMock()
    context.request_context.lifespan_context = {"jira_client": jira_client, "download_dir": str(tmp_path)}

    def fake_request(method, url, **kwargs):
        if url.endswith("/issue/PROJ-123"):
            return make_response(json_data=issue)
        return make_response(content=b"col\nvalue\n")

    with patch.object(jira_client.session, "request", side_effect=fake_request) as mock_request:
        result = await jira_download_latest_csv(context, issue_id="PROJ-123", suffix_only=True)

    assert result["attachment"]["filename"] == "export.csv"
    assert mock_request.call_args.args[1].endswith("/secure/attachment/1/export.csv")
    assert result["rows"] == [{"col": "value"}]


@pytest.mark.asyncio
async def test_download_latest_csv_delete_after_read(mcp_context, latest_csv, tmp_path):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.fetch_latest_csv.return_value = latest_csv
    local_file = tmp_path / "456-report-february.csv"
    local_file.write_bytes(jira_responses.MOCK_CSV_CONTENT)
    mock_client.download_attachment.return_value = str(local_file)

    result = await jira_download_latest_csv(mcp_context, issue_id="PROJ-123", delete_after_read=True)

    assert len(result["rows"]) == 3
    assert result["local_file"] is None
    assert not local_file.exists()


@pytest.mark.asyncio
async def test_download_latest_csv_nothing_to_download(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]

    result = await jira_download_latest_csv(mcp_context, issue_id="PROJ-124")

    assert result == {"found": False, "attachment": None, "local_file": None, "rows": None}
    mock_client.download_attachment.assert_not_called()


@pytest.mark.asyncio
async def test_download_latest_csv_keeps_file_on_parse_failure(mcp_context, latest_csv, tmp_path):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.fetch_latest_csv.return_value = latest_csv
    local_file = tmp_path / "789-report-february.csv"
    local_file.write_text("a,b\n1,2,3\n")
    mock_client.download_attachment.return_value = str(local_file)

    with pytest.raises(ParseError):
        await jira_download_latest_csv(mcp_context, issue_id="PROJ-123", delete_after_read=True)

    assert local_file.exists()


@pytest.mark.asyncio
async def test_add_comment_success(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.post_comment.return_value = make_response(status_code=201, json_data=jira_responses.MOCK_COMMENT)

    result = await jira_add_comment(mcp_context, issue_id="PROJ-123", comment="Report processed: 3 rows")

    mock_client.post_comment.assert_called_once_with("PROJ-123", "Report processed: 3 rows")
    assert result["status_code"] == 201
    assert result["ok"] is True
    assert result["comment"]["id"] == "30001"


@pytest.mark.asyncio
async def test_add_comment_failure_status(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.post_comment.return_value = make_response(status_code=403, content=b"forbidden")

    result = await jira_add_comment(mcp_context, issue_id="PROJ-123", comment="hi")

    assert result == {"status_code": 403, "ok": False, "comment": None}


@pytest.mark.asyncio
async def test_upload_attachment(mcp_context):
    mock_client = mcp_context.request_context.lifespan_context["jira_client"]
    mock_client.upload_attachment.return_value = jira_responses.MOCK_UPLOADED_ATTACHMENTS

    result = await jira_upload_attachment(mcp_context, issue_id="PROJ-123", file_path="/tmp/results.csv")

    mock_client.upload_attachment.assert_called_once_with("PROJ-123", "/tmp/results.csv")
    assert result[0]["filename"] == "results.csv"


@pytest.mark.asyncio
async def test_read_and_delete_local_csv(mcp_context, tmp_path):
    path = tmp_path / "local.csv"
    path.write_text("k,v\nx,1\n")

    rows = await jira_read_local_csv(mcp_context, filename=str(path))
    assert rows == [{"k": "x", "v": "1"}]

    result = await jira_delete_local_file(mcp_context, filename=str(path))
    assert result == {"deleted": str(path)}
    assert not path.exists()

    with pytest.raises(FilesystemError):
        await jira_delete_local_file(mcp_context, filename=str(path))


@pytest.mark.asyncio
async def test_download_latest_csv_end_to_end(jira_client, tmp_path):
    """Full pipeline against a patched session: list, select, download, parse."""
    from unittest.mock import MagicMock

    context = MagicMock()
    context.request_context.lifespan_context = {"jira_client": jira_client, "download_dir": str(tmp_path)}

    def fake_request(method, url, **kwargs):
        if url.endswith("/issue/PROJ-123"):
            return make_response(json_data=jira_responses.MOCK_ISSUE)
        if url == jira_responses.MOCK_ATTACHMENT_CSV_NEW["content"]:
            return make_response(content=jira_responses.MOCK_CSV_CONTENT)
        raise requests.exceptions.ConnectionError(f"unexpected url {url}")

    with patch.object(jira_client.session, "request", side_effect=fake_request):
        result = await jira_download_latest_csv(context, issue_id="PROJ-123")

    assert result["attachment"]["filename"] == "report-february.csv"
    assert os.path.basename(result["local_file"]).endswith("-report-february.csv")
    assert [row["name"] for row in result["rows"]] == ["alpha", "beta", "gamma"]
