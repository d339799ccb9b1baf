"""Attachment selection

Narrows an issue's attachment list down to the single CSV worth downloading.
"""

import logging
from typing import Iterable, List, Optional

from .models.attachment import Attachment

logger = logging.getLogger(__name__)

CSV_MARKER = "csv"
CSV_SUFFIX = ".csv"


def filter_csv_attachments(
    attachments: Iterable[Attachment],
    suffix_only: bool = False
) -> List[Attachment]:
    """Keep attachments whose filename looks like a CSV.

    By default this is a case-sensitive substring match on "csv", so
    "foo.csvold" and "csvx.txt" also pass. ``suffix_only`` restricts the
    match to names ending in ".csv". Input order is preserved.
    """
    if suffix_only:
        return [a for a in attachments if a.filename.endswith(CSV_SUFFIX)]
    return [a for a in attachments if CSV_MARKER in a.filename]


def select_latest(attachments: Iterable[Attachment]) -> Optional[Attachment]:
    """Return the attachment with the greatest creation time.

    Ties go to the earliest element. Returns None for an empty input.
    """
    latest = None
    for attachment in attachments:
        if latest is None or attachment.created_ticks > latest.created_ticks:
            latest = attachment

    if latest is not None:
        logger.debug(f"Selected attachment '{latest.filename}' created {latest.created.isoformat()}")
    return latest
