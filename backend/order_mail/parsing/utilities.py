"""
Order Email Parsing Utilities

Date handling for message send dates:
- RFC 2822 Date headers ("Mon, 15 Jan 2024 10:30:00 +0800")
- ISO 8601 ("2024-01-15", "2024-01-15T10:30:00Z")
- Common textual formats ("15 January 2024", "Jan 15, 2024", "15/01/2024")
"""

import re
from datetime import date, datetime
from email.utils import parsedate_to_datetime
from typing import Optional

MONTH_MAP = {
    'jan': 1, 'january': 1,
    'feb': 2, 'february': 2,
    'mar': 3, 'march': 3,
    'apr': 4, 'april': 4,
    'may': 5,
    'jun': 6, 'june': 6,
    'jul': 7, 'july': 7,
    'aug': 8, 'august': 8,
    'sep': 9, 'sept': 9, 'september': 9,
    'oct': 10, 'october': 10,
    'nov': 11, 'november': 11,
    'dec': 12, 'december': 12,
}

MONTH_PATTERN = r'(Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)'

DATE_PATTERNS = [
    # 15 January 2024 or 15 Jan 2024
    (rf'(\d{{1,2}})(?:st|nd|rd|th)?\s+{MONTH_PATTERN}\s+(\d{{4}})', 'DMY_TEXT'),
    # January 15, 2024 or Jan 15 2024
    (rf'{MONTH_PATTERN}\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})', 'MDY_TEXT'),
    # 2024-01-15 or 2024/01/15
    (r'(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})', 'YMD'),
    # 15/01/2024 or 15-01-2024
    (r'(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})', 'DMY'),
]


def parse_date_text(text: str) -> Optional[date]:
    """Parse a date from free text using common patterns."""
    for pattern, fmt in DATE_PATTERNS:
        match = re.search(pattern, text, re.IGNORECASE)
        if not match:
            continue
        try:
            if fmt == 'DMY_TEXT':
                day, month, year = int(match.group(1)), MONTH_MAP[match.group(2).lower()], int(match.group(3))
            elif fmt == 'MDY_TEXT':
                month, day, year = MONTH_MAP[match.group(1).lower()], int(match.group(2)), int(match.group(3))
            elif fmt == 'YMD':
                year, month, day = int(match.group(1)), int(match.group(2)), int(match.group(3))
            else:
                day, month, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
            return date(year, month, day)
        except (ValueError, KeyError):
            continue

    return None


def parse_send_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse a message send-date field to a calendar date.

    The date is taken in the sender's own timezone (no UTC conversion).

    Args:
        date_str: Raw Date header or other date string

    Returns:
        date, or None if unparseable
    """
    if not date_str or not date_str.strip():
        return None

    date_str = date_str.strip()

    try:
        return parsedate_to_datetime(date_str).date()
    except (TypeError, ValueError, IndexError):
        pass

    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    return parse_date_text(date_str)


def resolve_purchase_date(date_str: Optional[str], now: Optional[datetime] = None) -> date:
    """Send date, or today (at synthesis time) when it cannot be parsed."""
    parsed = parse_send_date(date_str)
    if parsed:
        return parsed
    return (now or datetime.now()).date()
