"""Time utility functions for classifying and converting timestamps."""

import re
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dateparser

from .config import TIMESTAMP_KEYWORDS, TIMESTAMP_LABEL_WORDS


# Literal formats tried in order before the generic date parse.
TIMESTAMP_PATTERNS = [
    # ISO 8601: 2024-03-01T00:00:00[.fff][Z|+01:00]
    re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?$'),
    # DD/MM/YYYY HH:mm
    re.compile(r'^\d{2}/\d{2}/\d{4}\s\d{2}:\d{2}$'),
    # MM/DD/YYYY H:mm[:ss][ AM/PM]
    re.compile(r'^\d{1,2}/\d{1,2}/\d{4}\s\d{1,2}:\d{1,2}(?::\d{1,2})?(?:\s[APap][Mm])?$'),
    # YYYY/MM/DD H:mm[:ss]
    re.compile(r'^\d{4}/\d{1,2}/\d{1,2}\s\d{1,2}:\d{1,2}(?::\d{1,2})?$'),
    # YYYYMMDD_HHMMSS
    re.compile(r'^\d{8}_\d{6}$'),
    # Unix epoch seconds
    re.compile(r'^\d{10}$'),
]


_LABEL_WORDS_PATTERN = re.compile("|".join(sorted(TIMESTAMP_LABEL_WORDS, key=len, reverse=True)))


def looks_like_timestamp_label(value: str) -> bool:
    """
    True when a cell reads like a timestamp column label rather than a value.

    The cell must mention a timestamp keyword and consist only of label
    words, digits and separators ("Date/Time (UTC)", "iso8601"), so that
    arbitrary text such as "not-a-date" is not mistaken for a label.
    """
    lowered = value.lower()
    if not any(keyword in lowered for keyword in TIMESTAMP_KEYWORDS):
        return False
    return not re.search(r"[a-z]", _LABEL_WORDS_PATTERN.sub("", lowered))


def is_valid_timestamp(value: Any) -> bool:
    """
    Decide whether a CSV cell looks like a timestamp.

    Header labels ("Timestamp", "Date/Time", "UTC", ...) are accepted so that
    a header row repeated in the data never gets flagged.

    Args:
        value: Raw cell value

    Returns:
        bool: True on the first matching format, False if none match
    """
    if not value or not isinstance(value, str):
        return False

    if looks_like_timestamp_label(value):
        return True

    for pattern in TIMESTAMP_PATTERNS:
        if pattern.match(value):
            return True

    return _parses_as_date(value)


def _parses_as_date(value: str) -> bool:
    """Generic calendar-date parse used as the last resort."""
    text = value.strip()
    # dateutil happily turns bare numbers into dates ("5.2" -> May 2nd)
    if not text or re.fullmatch(r'[+-]?\d+(?:\.\d+)?', text):
        return False
    try:
        dateparser.parse(text)
    except (ValueError, OverflowError):
        return False
    return True


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string with a Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def campaign_start_datetime(doc: Optional[dict]) -> str:
    """
    Campaign start as a date_from value.

    Returns the document's startDate (date-only values get T00:00:00Z),
    or the current time when no start date is set.
    """
    start = (doc or {}).get("startDate")
    if not start:
        return utc_now_iso()
    if "T" in start:
        return start
    return f"{start}T00:00:00Z"


def campaign_end_datetime(doc: Optional[dict]) -> Optional[str]:
    """Campaign end as a date_to value (date-only values get T23:59:59Z), or None."""
    end = (doc or {}).get("endDate")
    if not end:
        return None
    if "T" in end:
        return end
    return f"{end}T23:59:59Z"


def date_part(value: Optional[str]) -> Optional[str]:
    """Calendar date (YYYY-MM-DD) of a date or datetime string, None if unparseable."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if re.fullmatch(r'\d{4}-\d{2}-\d{2}', text):
        return text
    try:
        return dateparser.isoparse(text).date().isoformat()
    except (ValueError, OverflowError):
        return None

