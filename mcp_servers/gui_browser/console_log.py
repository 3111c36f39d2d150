from __future__ import annotations

import threading
from collections import deque
from typing import Any

DEFAULT_MAX_LINES = 1000


def _format_remote_object(obj: Any) -> str:
    if not isinstance(obj, dict):
        return str(obj)
    if "value" in obj:
        value = obj["value"]
        return "null" if value is None else str(value)
    if obj.get("type") == "undefined":
        return "undefined"
    return str(obj.get("description") or obj.get("unserializableValue") or obj.get("type") or "")


class ConsoleLog:
    """Bounded buffer of page console output, one ``[level] text`` line per message."""

    def __init__(self, max_lines: int = DEFAULT_MAX_LINES) -> None:
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._lock = threading.Lock()

    def append(self, level: str, text: str) -> None:
        with self._lock:
            self._lines.append(f"[{level}] {text}")

    def handle_event(self, event: dict[str, Any]) -> None:
        method = event.get("method")
        params = event.get("params") if isinstance(event.get("params"), dict) else {}
        if method == "Runtime.consoleAPICalled":
            args = params.get("args") if isinstance(params.get("args"), list) else []
            self.append(str(params.get("type") or "log"), " ".join(_format_remote_object(a) for a in args))
        elif method == "Log.entryAdded":
            entry = params.get("entry") if isinstance(params.get("entry"), dict) else {}
            self.append(str(entry.get("level") or "info"), str(entry.get("text") or ""))
        elif method == "Runtime.exceptionThrown":
            details = params.get("exceptionDetails") if isinstance(params.get("exceptionDetails"), dict) else {}
            exc = details.get("exception") if isinstance(details.get("exception"), dict) else {}
            self.append("error", str(exc.get("description") or details.get("text") or "Uncaught exception"))

    def lines(self) -> list[str]:
        with self._lock:
            return list(self._lines)

    def text(self) -> str:
        return "\n".join(self.lines())

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
