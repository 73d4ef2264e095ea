"""
Duration Parser.

Converts the duration encodings found in dashboard exports into seconds:
- "H:M:S" / "M:S" colon form
- "D:H:M" colon form (ForbiddenParking day:hour:minute column)
- long-form text such as "1 ชม. 5 นาที 3 วินาที" or "2 hours 5 min"

Unrecognized input is a normal case (events with no elapsed time) and yields 0.
"""

import re
from datetime import datetime
from typing import Optional, Union

# Colon-separated duration token: "09:15:30", "5:07", "00:00:08"
TIME_TOKEN_RE = re.compile(r'^\d+:\d{1,2}(?::\d{1,2})?$')

# Long-form unit patterns; each quantity is optional
_DAYS_RE = re.compile(r'(\d+(?:\.\d+)?)\s*(?:วัน|days?|d(?![a-zA-Z]))', re.IGNORECASE)
_HOURS_RE = re.compile(r'(\d+(?:\.\d+)?)\s*(?:ชั่วโมง|ชม\.?|hours?|hrs?|h(?![a-zA-Z]))', re.IGNORECASE)
_MINUTES_RE = re.compile(r'(\d+(?:\.\d+)?)\s*(?:นาที|minutes?|mins?|m(?![a-zA-Z]))', re.IGNORECASE)
_SECONDS_RE = re.compile(r'(\d+(?:\.\d+)?)\s*(?:วินาที|วิ\.?|seconds?|secs?|s(?![a-zA-Z]))', re.IGNORECASE)
_UNIT_PATTERNS = (_DAYS_RE, _HOURS_RE, _MINUTES_RE, _SECONDS_RE)

DATETIME_FORMATS = [
    '%d/%m/%Y %H:%M:%S',
    '%d/%m/%Y %H:%M',
    '%d.%m.%Y %H:%M:%S',
    '%d.%m.%Y %H:%M',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
]

_DATETIME_RE = re.compile(r'^\d{1,4}[/.\-]\d{1,2}[/.\-]\d{1,4}\s+\d{1,2}:\d{2}(?::\d{2})?$')


def is_time_token(text: str) -> bool:
    """True for a bare colon-form duration/time cell."""
    return bool(text) and bool(TIME_TOKEN_RE.match(text.strip()))


def is_long_form(text: str) -> bool:
    """
    True when text is made only of localized quantities ("1 ชม. 5 นาที",
    "2 hours 5 min"); narrative text that merely mentions a number is not.
    """
    if not text:
        return False
    rest = text
    found = False
    for pattern in _UNIT_PATTERNS:
        rest, n = pattern.subn('', rest)
        found = found or n > 0
    return found and not rest.strip(' .,')


def is_datetime(text: str) -> bool:
    """True for a date + time-of-day cell such as "31/01/2026 06:13:09"."""
    return bool(text) and bool(_DATETIME_RE.match(text.strip()))


def _to_unit(seconds: float, unit: str) -> Union[int, float]:
    if unit == 'minutes':
        return seconds / 60
    if unit == 'seconds':
        return int(seconds)
    raise ValueError(f"Unknown duration unit: {unit}")


def _colon_seconds(text: str, day_hour_minute: bool) -> int:
    parts = [int(p) for p in text.split(':')]
    if len(parts) == 3:
        if day_hour_minute:
            days, hours, minutes = parts
            return days * 86400 + hours * 3600 + minutes * 60
        hours, minutes, seconds = parts
        return hours * 3600 + minutes * 60 + seconds
    minutes, seconds = parts
    return minutes * 60 + seconds


def _long_form_seconds(text: str) -> float:
    total = 0.0
    for pattern, factor in zip(_UNIT_PATTERNS, (86400, 3600, 60, 1)):
        match = pattern.search(text)
        if match:
            total += float(match.group(1)) * factor
            # consumed so "5 min" is not re-read by a shorter unit
            text = text[:match.start()] + text[match.end():]
    return total


def parse_duration(text: Optional[str], unit: str = 'seconds',
                   day_hour_minute: bool = False) -> Union[int, float]:
    """
    Parse a duration cell.

    Args:
        text: Cell text
        unit: 'seconds' (int result) or 'minutes' (float result)
        day_hour_minute: Read a three-part colon value as D:H:M instead of H:M:S

    Returns:
        Duration in the requested unit, 0 for empty or unrecognized input

    Examples:
        "02:15:09" → 8109
        "00:01:30" with day_hour_minute → 5400
        "1 ชม. 5 นาที 3 วินาที" → 3903
        "" → 0
    """
    if unit not in ('seconds', 'minutes'):
        raise ValueError(f"Unknown duration unit: {unit}")
    if not text:
        return _to_unit(0, unit)

    text = str(text).strip()
    if TIME_TOKEN_RE.match(text):
        return _to_unit(_colon_seconds(text, day_hour_minute), unit)
    if is_long_form(text):
        return _to_unit(_long_form_seconds(text), unit)
    return _to_unit(0, unit)


def format_duration(total_seconds: Union[int, float, None]) -> str:
    """
    Format seconds as HH:MM:SS.

    Each field is zero-padded to two digits; hours are not capped and simply
    widen past 99 ("123:04:05").
    """
    if not total_seconds or total_seconds < 0:
        total_seconds = 0
    total_seconds = int(total_seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_datetime(text: Optional[str]) -> Optional[datetime]:
    """Parse a dashboard date-time cell, None if no known format fits."""
    if not text:
        return None
    text = text.strip()
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def span_seconds(start: Optional[str], end: Optional[str]) -> int:
    """Seconds between two date-time cells, 0 when either is unparsable or end <= start."""
    t1 = parse_datetime(start)
    t2 = parse_datetime(end)
    if t1 is None or t2 is None or t2 <= t1:
        return 0
    return int((t2 - t1).total_seconds())
