"""Natural-language date/time resolution."""

from triage.temporal.resolver import (
    DateParseError,
    EventWindow,
    parse_time,
    resolve_date,
    resolve_due_instant,
    resolve_event_window,
)

__all__ = [
    "DateParseError",
    "EventWindow",
    "parse_time",
    "resolve_date",
    "resolve_due_instant",
    "resolve_event_window",
]
