from __future__ import annotations

import json
from typing import Any
from urllib.error import URLError
from urllib.request import Request, urlopen


class HttpClientError(Exception):
    pass


class BrowserLaunchError(HttpClientError):
    """Launching the browser process failed or CDP never became reachable."""

    def __init__(self, message: str, *, command: list[str] | None = None, log_tail: str | None = None) -> None:
        super().__init__(message)
        self.command = list(command or [])
        self.log_tail = log_tail


class BrowserNotLaunchedError(HttpClientError):
    """A page or tab operation ran without a live browser."""


def cdp_http_url(port: int, path: str) -> str:
    return f"http://127.0.0.1:{int(port)}{path}"


def http_get_json(url: str, timeout: float = 2.0) -> Any:
    """Fetch JSON from a CDP HTTP endpoint (/json/version, /json/list, ...)."""
    req = Request(url, headers={"User-Agent": "gui-browser-mcp"})
    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode(errors="replace")
    except (OSError, URLError) as exc:
        raise HttpClientError(str(exc)) from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # /json/close answers with plain text ("Target is closing").
        return raw


__all__ = [
    "BrowserLaunchError",
    "BrowserNotLaunchedError",
    "HttpClientError",
    "cdp_http_url",
    "http_get_json",
]
