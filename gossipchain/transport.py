"""Small JSON-over-HTTP helpers used to talk to peer nodes."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any


def _timeout(seconds: float | None) -> float | None:
    # A zero timeout means "wait as long as it takes".
    return seconds if seconds and seconds > 0 else None


def _send(request: urllib.request.Request, timeout: float | None) -> str:
    try:
        with urllib.request.urlopen(request, timeout=_timeout(timeout)) as response:
            return response.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as err:
        with err:
            return err.read().decode("utf-8", errors="replace")


def post_json(url: str, payload: Any, timeout: float | None = 0) -> str:
    """POST ``payload`` as JSON and return the response body as text."""
    body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    request = urllib.request.Request(
        url,
        data=body,
        method="POST",
        headers={"Content-Type": "application/json"},
    )
    return _send(request, timeout)


def get_json(url: str, timeout: float | None = 0) -> Any:
    """GET ``url`` and decode the response body as JSON."""
    request = urllib.request.Request(url, method="GET")
    return json.loads(_send(request, timeout))