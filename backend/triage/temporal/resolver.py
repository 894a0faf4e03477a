"""Resolve loose date/time text into concrete instants.

Date rules are tried in order and the first match wins:

1. ``today`` / ``tomorrow`` relative to ``now``
2. strict ISO ``YYYY-MM-DD``
3. three-component ``/``, ``-`` or ``.`` separated dates, year-first when the
   first component has four digits, month-first otherwise
4. month name plus day number (``Nov 14``, ``14th of November``)
5. ``next <weekday|week|month|year>``
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

EVENT_DEFAULT_START = time(7, 0)
EVENT_DEFAULT_DURATION = timedelta(hours=1)
DUE_DEFAULT_TIME = time(9, 0)
PAST_DATE_ROLLOVER_DAYS = 7

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_SEPARATED_DATE_RE = re.compile(r"^(\d{1,4})[/.\-](\d{1,2})[/.\-](\d{1,4})$")
_MONTH_RE = re.compile(
    r"\b(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b\.?"
)
_DAY_RE = re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)?\b")
_YEAR_RE = re.compile(r"\b(\d{4})\b")
_NEXT_RE = re.compile(r"\bnext\s+([a-z]+)\b")
_CLOCK_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})\s*([ap])?\.?m?\.?\b")
_HOUR_ONLY_RE = re.compile(r"\b(\d{1,2})\s*([ap])\.?m\.?\b")
_BARE_HOUR_RE = re.compile(r"^(\d{1,2})$")

_WEEKDAYS = {name.lower(): idx for idx, name in enumerate(calendar.day_name)}


class DateParseError(ValueError):
    """Raised when date text cannot be resolved to a calendar date."""


@dataclass(frozen=True, slots=True)
class EventWindow:
    """Concrete start/end instants for a calendar event."""

    start: datetime
    end: datetime


def resolve_event_window(date_text: str, time_text: str, *, now: datetime) -> EventWindow:
    """Resolve an event's start and end, raising ``DateParseError`` on unknown dates."""

    day = resolve_date(date_text, now=now)
    clock = parse_time(time_text)
    start = datetime.combine(day, clock or EVENT_DEFAULT_START, tzinfo=now.tzinfo)
    return EventWindow(start=start, end=start + EVENT_DEFAULT_DURATION)


def resolve_due_instant(date_text: str, time_text: str, *, now: datetime) -> datetime:
    """Resolve a task due instant, falling back to ``now`` when the date is unknown."""

    clock = parse_time(time_text)
    try:
        day = resolve_date(date_text, now=now)
    except DateParseError:
        day = None
    if day is None:
        if clock is None:
            return now
        return datetime.combine(now.date(), clock, tzinfo=now.tzinfo)
    if clock is None:
        if _normalize(date_text) == "today":
            return now
        clock = DUE_DEFAULT_TIME
    return datetime.combine(day, clock, tzinfo=now.tzinfo)


def resolve_date(date_text: str, *, now: datetime) -> date:
    """Resolve loose date text to a calendar date."""

    text = _normalize(date_text)
    if not text:
        raise DateParseError("Date text is empty")
    today = now.date()

    if text == "today":
        return today
    if text == "tomorrow":
        return today + timedelta(days=1)

    for rule in (_parse_iso, _parse_separated, _parse_month_name, _parse_next):
        resolved = rule(text, today)
        if resolved is not None:
            return resolved
    raise DateParseError(f"Unrecognized date text: {date_text!r}")


def parse_time(time_text: str | None) -> time | None:
    """Parse ``H:MM[am|pm]`` or ``H[am|pm]``; return ``None`` when absent or unreadable."""

    text = _normalize(time_text)
    if not text:
        return None
    match = _CLOCK_TIME_RE.search(text)
    if match is not None:
        hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    else:
        match = _HOUR_ONLY_RE.search(text) or _BARE_HOUR_RE.match(text)
        if match is None:
            return None
        hour, minute = int(match.group(1)), 0
        meridiem = match.group(2) if match.re is _HOUR_ONLY_RE else None
    if meridiem == "p" and hour < 12:
        hour += 12
    elif meridiem == "a" and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def _normalize(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"\s+", " ", value).strip().lower()


def _parse_iso(text: str, today: date) -> date | None:
    match = _ISO_DATE_RE.match(text)
    if match is None:
        return None
    return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def _parse_separated(text: str, today: date) -> date | None:
    match = _SEPARATED_DATE_RE.match(text)
    if match is None:
        return None
    first, second, third = match.groups()
    if len(first) == 4:
        return _safe_date(int(first), int(second), int(third))
    year = int(third)
    if len(third) == 2:
        year += 2000
    return _safe_date(year, int(first), int(second))


def _parse_month_name(text: str, today: date) -> date | None:
    month_match = _MONTH_RE.search(text)
    if month_match is None:
        return None
    month = _month_number(month_match.group(1))
    remainder = text[: month_match.start()] + " " + text[month_match.end() :]

    year_match = _YEAR_RE.search(remainder)
    if year_match is not None:
        remainder = remainder[: year_match.start()] + " " + remainder[year_match.end() :]
    day_match = _DAY_RE.search(remainder)
    if day_match is None:
        return None
    day = int(day_match.group(1))

    if year_match is not None:
        return _safe_date(int(year_match.group(1)), month, day)
    resolved = _safe_date(today.year, month, day)
    if resolved is None:
        return None
    if (today - resolved).days > PAST_DATE_ROLLOVER_DAYS:
        resolved = _safe_date(today.year + 1, month, day)
    return resolved


def _parse_next(text: str, today: date) -> date | None:
    match = _NEXT_RE.search(text)
    if match is None:
        return None
    unit = match.group(1)
    if unit in _WEEKDAYS:
        days_ahead = (_WEEKDAYS[unit] - today.weekday()) % 7
        return today + timedelta(days=days_ahead or 7)
    if unit == "week":
        return today + timedelta(days=7)
    if unit == "month":
        return _add_months(today, 1)
    if unit == "year":
        return _add_months(today, 12)
    return None


def _month_number(token: str) -> int:
    prefix = token[:3]
    for idx in range(1, 13):
        if calendar.month_abbr[idx].lower() == prefix:
            return idx
    raise DateParseError(f"Unknown month name: {token!r}")


def _add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None
