"""JIRA Attachment Data Model

Pydantic model for attachments listed under an issue's ``fields.attachment``.
"""

from typing import Optional, Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator

# JIRA renders timestamps like 2024-01-15T10:30:00.000+0000
_JIRA_TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)


def parse_jira_timestamp(value: Any) -> datetime:
    """Parse a JIRA ``created`` value into a timezone-aware datetime.

    Integers are taken as epoch milliseconds. Naive values are assumed UTC.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = None
        for fmt in _JIRA_TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            parsed = datetime.fromisoformat(value)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Attachment(BaseModel):
    """JIRA attachment (file linked to an issue)."""

    id: Optional[str] = Field(default=None, description="Attachment ID")
    filename: str = Field(description="Original file name")
    created: datetime = Field(description="Upload timestamp")
    content: Optional[str] = Field(default=None, description="Direct content URL")
    mimeType: Optional[str] = Field(default=None, description="MIME type of file")
    size: Optional[int] = Field(default=None, description="File size in bytes")

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        """JIRA returns ids as strings, but fixtures and older servers use ints."""
        return None if v is None else str(v)

    @field_validator('created', mode='before')
    @classmethod
    def parse_created(cls, v: Any) -> datetime:
        return parse_jira_timestamp(v)

    @property
    def created_ticks(self) -> int:
        """Creation time as integer milliseconds since the epoch."""
        return int(self.created.timestamp() * 1000)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")

    class Config:
        frozen = True
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "id": "10001",
                "filename": "weekly-report.csv",
                "created": "2024-01-15T10:30:00.000+0000",
                "content": "https://jira.example.com/secure/attachment/10001/weekly-report.csv",
                "mimeType": "text/csv",
                "size": 2048
            }
        }
