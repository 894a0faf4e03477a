"""LLM-backed candidate extractor with tolerant JSON parsing."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from triage.extraction.extractor_interface import ExtractorInterface
from triage.extraction.types import CandidateEvent, Transcript

logger = logging.getLogger(__name__)

LLM_EXTRACTION_PROMPT_VERSION = "candidates.v1"
_PROMPT_FILES: dict[str, Path] = {
    "candidates.v1": Path(__file__).resolve().parent / "prompts" / "candidates_v1.txt",
}
_EMBEDDED_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


class ExtractionError(RuntimeError):
    """Raised when the extraction provider is unreachable or misconfigured."""


class LLMClient(Protocol):
    """Protocol for pluggable LLM clients used by the extractor."""

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the raw text completion."""


@dataclass(slots=True)
class OpenAIChatCompletionsClient:
    """Minimal OpenAI Chat Completions client using stdlib HTTP."""

    api_key: str
    model: str
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: int = 60

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Call OpenAI and return the assistant message content."""

        payload = {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        req = urllib_request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise ExtractionError(f"OpenAI HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise ExtractionError(f"OpenAI request failed: {exc.reason}") from exc

        try:
            content = json.loads(raw)["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as exc:
            raise ExtractionError("OpenAI returned an unexpected response envelope") from exc
        if not isinstance(content, str):
            raise ExtractionError("OpenAI response content is not a string")
        return content


@lru_cache(maxsize=8)
def _get_extraction_system_prompt(version: str = LLM_EXTRACTION_PROMPT_VERSION) -> str:
    prompt_file = _PROMPT_FILES.get(version)
    if prompt_file is None:
        raise ExtractionError(f"Extraction prompt version is not registered: {version}")
    try:
        prompt_text = prompt_file.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ExtractionError(f"Failed to load extraction prompt file: {prompt_file}") from exc
    if not prompt_text:
        raise ExtractionError(f"Extraction prompt file is empty: {prompt_file}")
    return prompt_text


class _RawCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    date: str | None = ""
    time: str | None = ""
    is_reminder: bool = Field(default=False, alias="isReminder")
    details: str | None = ""


def parse_candidate_payload(raw_text: str) -> list[CandidateEvent]:
    """Parse an LLM response into candidates; unreadable output yields an empty list."""

    decoded = _decode_json_array(raw_text)
    if decoded is None:
        logger.warning("extraction.unparseable_response length=%d", len(raw_text or ""))
        return []

    candidates: list[CandidateEvent] = []
    for index, item in enumerate(decoded):
        try:
            parsed = _RawCandidate.model_validate(item)
        except ValidationError as exc:
            logger.warning("extraction.invalid_candidate index=%d error=%s", index, exc.errors()[0]["msg"])
            continue
        title = _clean_text(parsed.title)
        if not title:
            continue
        candidates.append(
            CandidateEvent(
                title=title,
                date=_clean_text(parsed.date),
                time=_clean_text(parsed.time),
                is_reminder=parsed.is_reminder,
                details=_clean_text(parsed.details),
            )
        )
    return candidates


def _decode_json_array(raw_text: str) -> list[Any] | None:
    if not raw_text or not raw_text.strip():
        return None
    try:
        decoded = json.loads(raw_text)
    except json.JSONDecodeError:
        match = _EMBEDDED_ARRAY_RE.search(raw_text)
        if match is None:
            return None
        try:
            decoded = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    if isinstance(decoded, dict):
        # Some models wrap the array in an object despite the prompt.
        for value in decoded.values():
            if isinstance(value, list):
                return value
        return None
    return decoded if isinstance(decoded, list) else None


def _clean_text(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"\s+", " ", value).strip()


class LLMExtractor(ExtractorInterface):
    """Candidate extractor that asks an LLM for a JSON array of events and tasks."""

    def __init__(self, client: LLMClient) -> None:
        self._client = client
        self._last_raw_output: str | None = None

    def extract(self, transcript: Transcript) -> list[CandidateEvent]:
        """Extract candidates from one transcript; provider failures raise ``ExtractionError``."""

        self._last_raw_output = None
        text = transcript.markdown.strip()
        if not text:
            return []

        user_prompt = json.dumps(
            {
                "task": "Find events and action items in this transcript.",
                "transcript_title": transcript.title,
                "transcript_start": transcript.start_time.isoformat(),
                "transcript": text,
            },
            ensure_ascii=True,
        )
        raw_output = self._client.complete(_get_extraction_system_prompt(), user_prompt)
        self._last_raw_output = raw_output
        return parse_candidate_payload(raw_output)

    @property
    def prompt_version(self) -> str:
        return LLM_EXTRACTION_PROMPT_VERSION

    @property
    def model_name(self) -> str:
        return str(getattr(self._client, "model", self._client.__class__.__name__))

    @property
    def last_raw_output(self) -> str | None:
        return self._last_raw_output
