"""Due-date and duration expressions in Traditional Chinese and English."""

import re
from datetime import date, timedelta

HOURS_PER_DAY = 8

_HOURS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:小時|小时|時|hours?|hrs?|h)(?![a-z])", re.IGNORECASE)
_DAYS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:天|日|days?|d)(?![a-z])", re.IGNORECASE)
_NUMBER_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)$")

_FULL_DATE_PATTERN = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")
_MONTH_DAY_PATTERN = re.compile(r"(\d{1,2})\s*月\s*(\d{1,2})\s*[日號号]")
_SLASH_MONTH_DAY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})$")

# Checked in order; "day after tomorrow" must win over "tomorrow".
_RELATIVE_DAYS = (
    (("後天", "后天", "day after tomorrow"), 2),
    (("明天", "tomorrow"), 1),
    (("今天", "today"), 0),
    (("下週", "下周", "next week"), 7),
)


def parse_duration(text: str) -> float | None:
    """Convert an estimate like '8小時', '2 days' or '3' into hours.

    A day counts as eight working hours. Returns None when the text is not
    a positive duration.
    """
    text = text.strip()

    match = _HOURS_PATTERN.search(text)
    if match:
        hours = float(match.group(1))
    else:
        match = _DAYS_PATTERN.search(text)
        if match:
            hours = float(match.group(1)) * HOURS_PER_DAY
        else:
            match = _NUMBER_PATTERN.match(text)
            if not match:
                return None
            hours = float(match.group(1))

    return hours if hours > 0 else None


def _next_occurrence(month: int, day: int, today: date) -> date | None:
    """Month/day in the current year, or next year if it has already passed."""
    try:
        candidate = date(today.year, month, day)
        if candidate < today:
            candidate = date(today.year + 1, month, day)
    except ValueError:
        return None
    return candidate


def parse_date(text: str, today: date | None = None) -> date | None:
    """Resolve a due-date expression relative to ``today``.

    Supports ISO dates, '7月11日', '7/11' and relative words such as
    '明天' or 'next week'. Returns None for anything else.
    """
    today = today or date.today()
    text = text.strip()
    lowered = text.lower()

    match = _FULL_DATE_PATTERN.match(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None

    match = _MONTH_DAY_PATTERN.search(text) or _SLASH_MONTH_DAY_PATTERN.match(text)
    if match:
        return _next_occurrence(int(match.group(1)), int(match.group(2)), today)

    for words, offset in _RELATIVE_DAYS:
        if any(word in lowered for word in words):
            return today + timedelta(days=offset)

    return None
