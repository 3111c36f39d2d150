"""PageHandle: one open browser tab addressed through its CDP target.

A handle is a snapshot of a target at listing time plus a lazily-opened CDP
connection. Its position in the page list is not part of its identity.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from .http_client import HttpClientError, cdp_http_url, http_get_json
from .session_cdp import CdpConnection

ConnectionFactory = Callable[[str, float], CdpConnection]


def _default_connect(ws_url: str, timeout: float) -> CdpConnection:
    return CdpConnection(ws_url, timeout=timeout)


class PageHandle:
    def __init__(
        self,
        target: dict[str, Any],
        *,
        cdp_port: int,
        timeout: float = 5.0,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        self.target_id = str(target.get("id") or target.get("targetId") or "")
        self.ws_url = str(target.get("webSocketDebuggerUrl") or "")
        self.url = str(target.get("url") or "")
        self.title = str(target.get("title") or "")
        self.cdp_port = cdp_port
        self.timeout = timeout
        self._connect = connection_factory or _default_connect
        self._conn: CdpConnection | None = None
        self._lock = threading.RLock()
        self.closed = False

    def __repr__(self) -> str:
        return f"PageHandle(id={self.target_id!r}, url={self.url!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PageHandle) and other.target_id == self.target_id

    def __hash__(self) -> int:
        return hash(self.target_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Connection
    # ─────────────────────────────────────────────────────────────────────────

    def _connection(self) -> CdpConnection:
        if self.closed:
            raise HttpClientError(f"Page {self.target_id} is closed")
        if self._conn is None:
            if not self.ws_url:
                raise HttpClientError(f"Page {self.target_id} has no debugger WebSocket (attached elsewhere?)")
            self._conn = self._connect(self.ws_url, self.timeout)
        return self._conn

    def send(self, method: str, params: dict[str, Any] | None = None, *, timeout: float | None = None) -> dict[str, Any]:
        with self._lock:
            conn = self._connection()
            try:
                return conn.send(method, params, timeout=timeout)
            except HttpClientError:
                # A timed-out or broken socket is not reusable.
                self.disconnect()
                raise

    def disconnect(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()

    # ─────────────────────────────────────────────────────────────────────────
    # JavaScript
    # ─────────────────────────────────────────────────────────────────────────

    def evaluate(self, expression: str, *, timeout: float | None = None) -> Any:
        """Evaluate JavaScript and return its value (undefined/null become None)."""
        result = self.send(
            "Runtime.evaluate",
            {"expression": expression, "returnByValue": True, "awaitPromise": True},
            timeout=timeout,
        )
        if result.get("exceptionDetails"):
            details = result["exceptionDetails"]
            text = details.get("exception", {}).get("description") or details.get("text") or "evaluation failed"
            raise HttpClientError(f"JavaScript error: {text}")
        value = result.get("result")
        if not isinstance(value, dict):
            return None
        if value.get("type") == "undefined":
            return None
        if value.get("type") == "object" and value.get("subtype") == "null":
            return None
        return value.get("value")

    def get_url(self) -> str:
        self.url = self.evaluate("window.location.href") or ""
        return self.url

    def get_title(self) -> str:
        self.title = self.evaluate("document.title") or ""
        return self.title

    def content(self) -> str:
        return self.evaluate("document.documentElement ? document.documentElement.outerHTML : ''") or ""

    def inner_text(self) -> str:
        return self.evaluate("document.body ? document.body.innerText : ''") or ""

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation
    # ─────────────────────────────────────────────────────────────────────────

    def navigate(self, url: str, *, wait_load: bool = True, timeout: float = 30.0) -> str:
        with self._lock:
            self.send("Page.enable")
            result = self.send("Page.navigate", {"url": url})
            if result.get("errorText"):
                raise HttpClientError(f"Navigation failed: {result['errorText']}")
            if wait_load and result.get("loaderId"):
                loaded = self._connection().wait_for_event("Page.loadEventFired", timeout=timeout)
                if loaded is None:
                    raise TimeoutError(f"Navigation timeout after {timeout:.0f}s: {url}")
        self.url = url
        return url

    def reload(self, *, ignore_cache: bool = False, timeout: float = 30.0) -> None:
        with self._lock:
            self.send("Page.enable")
            self.send("Page.reload", {"ignoreCache": ignore_cache})
            if self._connection().wait_for_event("Page.loadEventFired", timeout=timeout) is None:
                raise TimeoutError(f"Reload timeout after {timeout:.0f}s")

    def _go_history(self, delta: int, timeout: float) -> bool:
        history = self.send("Page.getNavigationHistory")
        entries = history.get("entries") or []
        index = int(history.get("currentIndex", -1)) + delta
        if not 0 <= index < len(entries):
            return False
        with self._lock:
            self.send("Page.enable")
            self.send("Page.navigateToHistoryEntry", {"entryId": entries[index]["id"]})
            self._connection().wait_for_event("Page.loadEventFired", timeout=timeout)
        self.url = str(entries[index].get("url") or self.url)
        return True

    def go_back(self, timeout: float = 10.0) -> bool:
        return self._go_history(-1, timeout)

    def go_forward(self, timeout: float = 10.0) -> bool:
        return self._go_history(1, timeout)

    # ─────────────────────────────────────────────────────────────────────────
    # Tab
    # ─────────────────────────────────────────────────────────────────────────

    def bring_to_front(self) -> None:
        self.send("Page.bringToFront")

    def set_user_agent(self, user_agent: str) -> None:
        self.send("Network.setUserAgentOverride", {"userAgent": user_agent})

    def screenshot(self, *, full_page: bool = False) -> str:
        """Capture a PNG screenshot, base64 encoded."""
        params: dict[str, Any] = {"format": "png", "captureBeyondViewport": bool(full_page)}
        result = self.send("Page.captureScreenshot", params, timeout=max(self.timeout, 15.0))
        return str(result.get("data") or "")

    def close(self) -> None:
        """Close the tab through the CDP HTTP endpoint."""
        self.disconnect()
        http_get_json(cdp_http_url(self.cdp_port, f"/json/close/{self.target_id}"), timeout=self.timeout)
        self.closed = True

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.target_id, "url": self.url, "title": self.title}


def close_quietly(page: PageHandle) -> bool:
    """Close a page, ignoring failures. Returns True when the close call went through."""
    with suppress(Exception):
        page.close()
        return True
    return False


__all__ = ["ConnectionFactory", "PageHandle", "close_quietly"]
