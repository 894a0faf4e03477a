"""Summary notifications for approval requests and completed direct adds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

_COLUMNS = ("Type", "Title", "When", "Details", "Score")
_MAX_DETAILS = 60


@dataclass(frozen=True, slots=True)
class SummaryRow:
    item_type: str
    title: str
    when: str
    details: str
    score: int | None


class Notifier(Protocol):
    def send_approval_request(self, rows: list[SummaryRow]) -> None:
        """Announce pending items that need a decision."""

    def send_completion_notice(self, rows: list[SummaryRow]) -> None:
        """Announce items that were added without approval."""


def format_summary_table(rows: list[SummaryRow]) -> str:
    """Render rows as a fixed-width text table."""

    cells = [
        (
            row.item_type,
            row.title,
            row.when,
            row.details if len(row.details) <= _MAX_DETAILS else row.details[: _MAX_DETAILS - 3] + "...",
            "" if row.score is None else str(row.score),
        )
        for row in rows
    ]
    widths = [max(len(header), *(len(line[idx]) for line in cells)) for idx, header in enumerate(_COLUMNS)]
    lines = [
        " | ".join(header.ljust(widths[idx]) for idx, header in enumerate(_COLUMNS)),
        "-+-".join("-" * width for width in widths),
    ]
    lines.extend(" | ".join(value.ljust(widths[idx]) for idx, value in enumerate(line)) for line in cells)
    return "\n".join(line.rstrip() for line in lines)


class LoggingNotifier:
    """Notifier that writes the rendered summary to the application log."""

    def __init__(self, recipient: str | None = None) -> None:
        self.recipient = recipient or "owner"

    def send_approval_request(self, rows: list[SummaryRow]) -> None:
        if not rows:
            return
        logger.info(
            "notify.approval_request recipient=%s items=%d\n%s",
            self.recipient,
            len(rows),
            format_summary_table(rows),
        )

    def send_completion_notice(self, rows: list[SummaryRow]) -> None:
        if not rows:
            return
        logger.info(
            "notify.completion_notice recipient=%s items=%d\n%s",
            self.recipient,
            len(rows),
            format_summary_table(rows),
        )
