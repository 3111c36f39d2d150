"""Raw CDP WebSocket connection and a background event reader.

`CdpConnection` is a synchronous request/response client on top of websocket-client.
`CdpEventBus` owns its own connection on a daemon thread and feeds every CDP event to a
handler. The handler may answer events with commands on the same connection.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
import time
from collections.abc import Callable
from contextlib import suppress
from typing import Any

import websocket

from .http_client import HttpClientError

logger = logging.getLogger("mcp.gui_browser.cdp")

EventHandler = Callable[["CdpConnection", dict[str, Any]], None]
SetupHook = Callable[["CdpConnection"], None]


def _is_timeout(exc: Exception) -> bool:
    return isinstance(exc, (TimeoutError, websocket.WebSocketTimeoutException)) or "timed out" in str(exc).lower()


class CdpConnection:
    """Low-level CDP WebSocket connection."""

    def __init__(self, ws_url: str, timeout: float = 5.0):
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout)
        except (OSError, websocket.WebSocketException) as exc:
            raise HttpClientError(f"CDP connect failed: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        # Events that arrive while waiting for a command response are kept, not dropped.
        self._event_queue: list[dict[str, Any]] = []
        self._max_event_queue = 2000

    def _push_event(self, event: dict[str, Any]) -> None:
        self._event_queue.append(event)
        if len(self._event_queue) > self._max_event_queue:
            del self._event_queue[: len(self._event_queue) - self._max_event_queue]

    def pop_event(self, event_name: str) -> dict[str, Any] | None:
        """Pop the oldest queued event params for the given event name."""
        for i, ev in enumerate(self._event_queue):
            if ev.get("method") == event_name:
                self._event_queue.pop(i)
                params = ev.get("params")
                return params if isinstance(params, dict) else {}
        return None

    def send(self, method: str, params: dict[str, Any] | None = None, *, timeout: float | None = None) -> dict[str, Any]:
        """Send CDP command and wait for response."""
        msg_id = self._next_id
        self._next_id += 1

        msg: dict[str, Any] = {"id": msg_id, "method": method}
        if params:
            msg["params"] = params

        try:
            self.ws.settimeout(min(2.0, max(0.5, float(self.timeout))))
            self.ws.send(json.dumps(msg))
        except Exception as exc:  # noqa: BLE001
            raise HttpClientError(str(exc)) from exc

        return self._recv_until(msg_id, self.timeout if timeout is None else timeout)

    def _recv_until(self, expected_id: int, timeout: float) -> dict[str, Any]:
        """Wait for response with specific ID."""
        deadline = time.monotonic() + max(0.0, timeout)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise HttpClientError("CDP response timed out")

            # Keep the socket timeout small so our own deadline is enforced.
            try:
                self.ws.settimeout(min(0.5, remaining))
                raw = self.ws.recv()
            except Exception as exc:  # noqa: BLE001
                if _is_timeout(exc):
                    continue
                raise HttpClientError(str(exc)) from exc

            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not isinstance(data, dict):
                continue

            if isinstance(data.get("method"), str) and "id" not in data:
                self._push_event(data)
                continue

            if data.get("id") == expected_id:
                if "error" in data:
                    raise HttpClientError(str(data["error"]))
                return data.get("result", {})

    def wait_for_event(self, event_name: str, timeout: float = 10.0) -> dict[str, Any] | None:
        """Wait for specific CDP event."""
        queued = self.pop_event(event_name)
        if queued is not None:
            return queued

        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            try:
                self.ws.settimeout(min(0.5, remaining))
                raw = self.ws.recv()
            except Exception as exc:  # noqa: BLE001
                if _is_timeout(exc):
                    continue
                raise HttpClientError(str(exc)) from exc

            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                continue

            if isinstance(data, dict) and isinstance(data.get("method"), str) and "id" not in data:
                if data.get("method") == event_name:
                    params = data.get("params")
                    return params if isinstance(params, dict) else {}
                self._push_event(data)

    def recv_event(self, timeout: float = 0.5) -> dict[str, Any] | None:
        """Next queued or incoming event; None when nothing arrives in time."""
        if self._event_queue:
            return self._event_queue.pop(0)
        try:
            self.ws.settimeout(timeout)
            raw = self.ws.recv()
        except Exception as exc:  # noqa: BLE001
            if _is_timeout(exc):
                return None
            raise HttpClientError(str(exc)) from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return None
        if isinstance(data, dict) and isinstance(data.get("method"), str) and "id" not in data:
            return data
        return None

    def abort(self) -> None:
        """Hard break of the underlying socket (ws.close() can block on a wedged peer)."""
        sock = getattr(self.ws, "sock", None)
        if sock is not None:
            with suppress(Exception):
                sock.shutdown(socket.SHUT_RDWR)
            with suppress(Exception):
                sock.close()

    def close(self) -> None:
        """Close the WebSocket connection."""
        with suppress(Exception):
            self.abort()


class CdpEventBus:
    """Background CDP event reader with reconnect.

    ``setup`` runs after every (re)connect to enable domains; ``on_event`` receives each
    event together with the live connection. Handler failures are logged and never stop
    the reader.
    """

    def __init__(
        self,
        *,
        ws_url: str,
        on_event: EventHandler,
        setup: SetupHook | None = None,
        name: str = "cdp-event-bus",
        connection_factory: Callable[[str], CdpConnection] | None = None,
    ) -> None:
        self.ws_url = ws_url
        self._on_event = on_event
        self._setup = setup
        self._connect = connection_factory or (lambda url: CdpConnection(url, timeout=5.0))
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._conn: CdpConnection | None = None

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        if self._thread.is_alive():
            return
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        conn = self._conn
        if conn is not None:
            with suppress(Exception):
                conn.close()

    def _dispatch(self, conn: CdpConnection, event: dict[str, Any]) -> None:
        try:
            self._on_event(conn, event)
        except Exception:  # noqa: BLE001
            logger.exception("cdp_event_handler_failed method=%s", event.get("method"))

    def _run(self) -> None:
        backoff = 0.2
        while not self._stop.is_set():
            conn: CdpConnection | None = None
            try:
                conn = self._connect(self.ws_url)
                self._conn = conn
                if self._setup is not None:
                    self._setup(conn)
                backoff = 0.2

                while not self._stop.is_set():
                    event = conn.recv_event(timeout=0.5)
                    if event is not None:
                        self._dispatch(conn, event)
            except Exception as exc:  # noqa: BLE001
                if not self._stop.is_set():
                    logger.debug("cdp_event_bus_reconnect url=%s reason=%s", self.ws_url, exc)
            finally:
                if conn is not None:
                    conn.close()
                self._conn = None

            if self._stop.is_set():
                break
            time.sleep(backoff)
            backoff = min(backoff * 1.5, 2.0)


__all__ = ["CdpConnection", "CdpEventBus", "EventHandler", "SetupHook"]
