"""Shared stdlib JSON-over-HTTP helper for collaborator clients."""

from __future__ import annotations

import json
from typing import Any
from urllib import error as urllib_error
from urllib import request as urllib_request


class HttpRequestError(RuntimeError):
    """Raised when a collaborator HTTP call fails or returns non-JSON."""


def request_json(
    method: str,
    url: str,
    *,
    headers: dict[str, str],
    payload: dict[str, Any] | None = None,
    timeout_seconds: int = 30,
) -> dict[str, Any]:
    """Send one JSON request and decode the JSON response body."""

    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib_request.Request(
        url=url,
        data=data,
        method=method,
        headers={"Content-Type": "application/json", "Accept": "application/json", **headers},
    )
    try:
        with urllib_request.urlopen(req, timeout=timeout_seconds) as resp:
            raw = resp.read().decode("utf-8")
    except urllib_error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace")
        raise HttpRequestError(f"HTTP {exc.code} from {url}: {detail}") from exc
    except urllib_error.URLError as exc:
        raise HttpRequestError(f"Request to {url} failed: {exc.reason}") from exc

    if not raw.strip():
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HttpRequestError(f"Non-JSON response from {url}") from exc
    if not isinstance(decoded, dict):
        raise HttpRequestError(f"Unexpected JSON payload from {url}")
    return decoded
