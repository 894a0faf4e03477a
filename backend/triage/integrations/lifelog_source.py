"""Transcript source client for the life log journal API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol
from urllib.parse import urlencode

from triage.extraction.types import Transcript
from triage.integrations._http import HttpRequestError, request_json

logger = logging.getLogger(__name__)

_PAGE_LIMIT = 10
_MAX_PAGES = 20


class TranscriptSourceError(RuntimeError):
    """Raised when transcripts cannot be fetched."""


class TranscriptSource(Protocol):
    """Anything that can list transcripts for a time window."""

    def list_transcripts(self, *, start: datetime, end: datetime) -> list[Transcript]:
        """Return transcripts that started inside ``[start, end]``."""


def parse_start_time(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""

    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True)
class LifelogApiClient:
    """Paginated life log listing over stdlib HTTP."""

    api_key: str
    base_url: str = "https://api.limitless.ai"
    timeout_seconds: int = 30

    def list_transcripts(self, *, start: datetime, end: datetime) -> list[Transcript]:
        transcripts: list[Transcript] = []
        cursor: str | None = None
        for _ in range(_MAX_PAGES):
            params: dict[str, Any] = {
                "start": start.isoformat(),
                "end": end.isoformat(),
                "includeMarkdown": "true",
                "limit": _PAGE_LIMIT,
                "direction": "asc",
            }
            if cursor:
                params["cursor"] = cursor
            url = f"{self.base_url.rstrip('/')}/v1/lifelogs?{urlencode(params)}"
            try:
                payload = request_json(
                    "GET",
                    url,
                    headers={"X-API-Key": self.api_key},
                    timeout_seconds=self.timeout_seconds,
                )
            except HttpRequestError as exc:
                raise TranscriptSourceError(str(exc)) from exc

            for row in (payload.get("data") or {}).get("lifelogs") or []:
                transcript = self._to_transcript(row)
                if transcript is not None:
                    transcripts.append(transcript)
            cursor = ((payload.get("meta") or {}).get("lifelogs") or {}).get("nextCursor")
            if not cursor:
                break
        return transcripts

    @staticmethod
    def _to_transcript(row: dict[str, Any]) -> Transcript | None:
        try:
            return Transcript(
                id=str(row["id"]),
                title=str(row.get("title") or ""),
                start_time=parse_start_time(str(row["startTime"])),
                markdown=str(row.get("markdown") or ""),
            )
        except (KeyError, ValueError):
            logger.warning("lifelog_source.invalid_row id=%s", row.get("id"))
            return None
