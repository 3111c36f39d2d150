"""Named screenshots served as ``screenshot://<name>`` resources."""

from __future__ import annotations

import base64
import io
import threading
from collections import OrderedDict
from dataclasses import dataclass

from PIL import Image

SCREENSHOT_SCHEME = "screenshot://"


@dataclass(frozen=True)
class StoredScreenshot:
    name: str
    data: str  # base64 PNG
    width: int
    height: int

    @property
    def uri(self) -> str:
        return f"{SCREENSHOT_SCHEME}{self.name}"


def png_size(data_b64: str) -> tuple[int, int]:
    """Width and height of a base64 PNG; (0, 0) when it cannot be decoded."""
    try:
        with Image.open(io.BytesIO(base64.b64decode(data_b64))) as img:
            return img.size
    except (OSError, ValueError):
        return (0, 0)


class ScreenshotStore:
    """Keeps the most recent ``limit`` screenshots, oldest evicted first."""

    def __init__(self, limit: int = 20) -> None:
        self.limit = max(1, int(limit))
        self._items: OrderedDict[str, StoredScreenshot] = OrderedDict()
        self._counter = 0
        self._lock = threading.Lock()

    def next_name(self) -> str:
        with self._lock:
            self._counter += 1
            return f"screenshot-{self._counter}"

    def put(self, data_b64: str, name: str | None = None) -> StoredScreenshot:
        name = (name or "").strip() or self.next_name()
        width, height = png_size(data_b64)
        shot = StoredScreenshot(name=name, data=data_b64, width=width, height=height)
        with self._lock:
            self._items.pop(name, None)
            self._items[name] = shot
            while len(self._items) > self.limit:
                self._items.popitem(last=False)
        return shot

    def get(self, name: str) -> StoredScreenshot | None:
        with self._lock:
            return self._items.get(name)

    def list(self) -> list[StoredScreenshot]:
        with self._lock:
            return list(self._items.values())
