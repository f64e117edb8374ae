"""Formatting and parsing of the semicolon-delimited session log."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Iterable, Optional

from .models import LoggedSession, LookRecord

logger = logging.getLogger(__name__)

DELIMITER = ";"
TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"
HEADER_COLUMNS = ("Timestamp", "ObjectName", "ProductCategory", "TotalLookTime(sec)")
HEADER_LINE = DELIMITER.join(HEADER_COLUMNS)

_SEPARATOR_PATTERN = re.compile(
    r"^;;--- NEW SESSION STARTED ON (\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}) ---;$"
)


def format_separator(started_at: datetime) -> str:
    return (
        f"{DELIMITER}{DELIMITER}--- NEW SESSION STARTED ON "
        f"{started_at.strftime(TIMESTAMP_FMT)} ---{DELIMITER}"
    )


def format_record(record: LookRecord) -> str:
    return DELIMITER.join(
        (
            record.timestamp.strftime(TIMESTAMP_FMT),
            record.object_name,
            record.category,
            f"{record.total_seconds:.2f}",
        )
    )


def parse_separator(line: str) -> Optional[datetime]:
    match = _SEPARATOR_PATTERN.match(line.strip())
    if not match:
        return None
    return datetime.strptime(match.group(1), TIMESTAMP_FMT)


def parse_record(line: str) -> LookRecord:
    """Parse a data line, raising ``ValueError`` when it is malformed."""
    parts = line.strip().split(DELIMITER)
    if len(parts) != len(HEADER_COLUMNS):
        raise ValueError(f"expected {len(HEADER_COLUMNS)} columns, got {len(parts)}")
    timestamp, object_name, category, seconds = parts
    if not object_name:
        raise ValueError("object name is empty")
    total = float(seconds)
    if total < 0:
        raise ValueError("look time must not be negative")
    return LookRecord(
        timestamp=datetime.strptime(timestamp, TIMESTAMP_FMT),
        object_name=object_name,
        category=category or object_name,
        total_seconds=total,
    )


def parse_sessions(lines: Iterable[str]) -> list[LoggedSession]:
    """Split a session log into sessions.

    Records written before the first separator (logs from the very first run
    of older clients) form a session of their own whose start time is that of
    its first record. Malformed lines are skipped with a warning.
    """
    sessions: list[LoggedSession] = []
    current: Optional[LoggedSession] = None
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line == HEADER_LINE:
            continue
        started_at = parse_separator(line)
        if started_at is not None:
            current = LoggedSession(started_at=started_at)
            sessions.append(current)
            continue
        try:
            record = parse_record(line)
        except ValueError as exc:
            logger.warning("Skipping malformed log line %d: %s", number, exc)
            continue
        if current is None:
            current = LoggedSession(started_at=record.timestamp)
            sessions.append(current)
        current.records.append(record)
    return sessions
