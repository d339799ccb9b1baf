"""Local CSV storage

Naming, reading and removing the CSV files downloaded from JIRA.
"""

import csv
import os
import random
import logging
from typing import Dict, List

from .utils.errors import FilesystemError, ParseError

logger = logging.getLogger(__name__)

RANDOM_PREFIX_LIMIT = 10 ** 9


def random_local_filename(filename: str) -> str:
    """Prefix ``filename`` with a random integer to avoid local collisions."""
    return f"{random.randrange(RANDOM_PREFIX_LIMIT)}-{filename}"


def read_csv_rows(filename: str) -> List[Dict[str, str]]:
    """Parse a local CSV file into row dicts keyed by the header row.

    Args:
        filename: Path to the CSV file

    Returns:
        Rows in file order

    Raises:
        FilesystemError: If the file is missing or unreadable
        ParseError: If the content is not valid CSV or a row is wider than the header
    """
    logger.info(f"Reading CSV file: {filename}")
    try:
        with open(filename, newline="", encoding="utf-8") as fh:
            reader = csv.DictReader(fh, strict=True)
            rows = []
            for row in reader:
                if None in row:
                    raise ParseError(
                        f"Row {reader.line_num} of {filename} has more values than the header",
                        details={"file": filename, "line": reader.line_num}
                    )
                rows.append(row)
    except csv.Error as e:
        raise ParseError(f"Malformed CSV in {filename}: {e}", details={"file": filename}) from e
    except UnicodeDecodeError as e:
        raise ParseError(f"{filename} is not UTF-8 text: {e}", details={"file": filename}) from e
    except OSError as e:
        raise FilesystemError(f"Cannot read {filename}: {e}", details={"file": filename}) from e

    logger.debug(f"Read {len(rows)} rows from {filename}")
    return rows


def remove_file(filename: str) -> None:
    """Delete a local file permanently.

    Raises:
        FilesystemError: If the file does not exist or cannot be removed
    """
    try:
        os.remove(filename)
    except OSError as e:
        raise FilesystemError(f"Cannot remove {filename}: {e}", details={"file": filename}) from e
    logger.info(f"Removed local file: {filename}")
