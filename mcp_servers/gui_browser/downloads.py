"""Browser download tracking.

``DownloadTracker`` follows the browser-level ``Browser.downloadWillBegin`` and
``Browser.downloadProgress`` CDP events and keeps one ``DownloadRecord`` per guid.
Records stay for the life of the tracker; a canceled download is the only thing
that removes one.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import quote

from .session_cdp import CdpConnection, CdpEventBus

logger = logging.getLogger("mcp.gui_browser.downloads")

DOWNLOAD_SCHEME = "download://"


class DownloadPathError(ValueError):
    """A suggested filename that would point outside the download directory."""


class DownloadState:
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELED = "canceled"


def download_uri(filename: str) -> str:
    return f"{DOWNLOAD_SCHEME}{quote(filename)}"


@dataclass
class DownloadRecord:
    guid: str
    url: str
    suggested_filename: str
    resource_uri: str
    created_at: float = field(default_factory=time.time)
    progress: float = 0.0
    state: str = DownloadState.IN_PROGRESS

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "guid": data["guid"],
            "url": data["url"],
            "suggestedFilename": data["suggested_filename"],
            "resourceUri": data["resource_uri"],
            "createdAt": data["created_at"],
            "progress": data["progress"],
            "state": data["state"],
        }


class DownloadTracker:
    def __init__(self, download_dir: str) -> None:
        self.download_dir = Path(download_dir)
        self._records: dict[str, DownloadRecord] = {}
        self._lock = threading.Lock()
        self._bus: CdpEventBus | None = None

    # ─────────────────────────────────────────────────────────────────────────
    # Event handling
    # ─────────────────────────────────────────────────────────────────────────

    def handle_event(self, event: dict[str, Any]) -> None:
        method = event.get("method")
        params = event.get("params")
        if not isinstance(params, dict):
            params = {}
        if method == "Browser.downloadWillBegin":
            self.on_will_begin(params)
        elif method == "Browser.downloadProgress":
            self.on_progress(params)

    def on_will_begin(self, params: dict[str, Any]) -> DownloadRecord | None:
        filename = params.get("suggestedFilename")
        url = params.get("url")
        guid = params.get("guid")
        if not (filename and url and guid):
            logger.debug("download_event_ignored event=downloadWillBegin params=%s", params)
            return None

        record = DownloadRecord(
            guid=str(guid),
            url=str(url),
            suggested_filename=str(filename),
            resource_uri=download_uri(str(filename)),
        )
        with self._lock:
            self._records[record.guid] = record
        self.download_dir.mkdir(parents=True, exist_ok=True)
        logger.info("download_started guid=%s file=%s", record.guid, record.suggested_filename)
        return record

    def on_progress(self, params: dict[str, Any]) -> DownloadRecord | None:
        guid = str(params.get("guid") or "")
        with self._lock:
            record = self._records.get(guid)
            if record is None:
                logger.debug("download_event_ignored event=downloadProgress guid=%s", guid or None)
                return None

            state = params.get("state")
            if isinstance(state, str) and state:
                record.state = state
            try:
                total = float(params.get("totalBytes") or 0)
                received = float(params.get("receivedBytes") or 0)
            except (TypeError, ValueError):
                total, received = 0.0, 0.0
            record.progress = received / total * 100 if total > 0 else 0.0

            if record.state == DownloadState.CANCELED:
                del self._records[guid]
                logger.info("download_canceled guid=%s file=%s", guid, record.suggested_filename)
            elif record.state == DownloadState.COMPLETED:
                logger.info("download_completed guid=%s file=%s", guid, record.suggested_filename)
        return record

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def list(self) -> list[DownloadRecord]:
        with self._lock:
            return list(self._records.values())

    def find_by_filename(self, filename: str) -> DownloadRecord | None:
        with self._lock:
            for record in self._records.values():
                if record.suggested_filename == filename:
                    return record
        return None

    def path_for(self, record: DownloadRecord) -> Path:
        """Location of a download on disk; never outside ``download_dir``."""
        root = self.download_dir.resolve()
        path = (root / record.suggested_filename).resolve()
        if root not in path.parents:
            raise DownloadPathError(f"{record.suggested_filename!r} resolves outside {root}")
        return path

    # ─────────────────────────────────────────────────────────────────────────
    # Browser subscription
    # ─────────────────────────────────────────────────────────────────────────

    def _setup(self, conn: CdpConnection) -> None:
        conn.send(
            "Browser.setDownloadBehavior",
            {"behavior": "allow", "downloadPath": str(self.download_dir), "eventsEnabled": True},
        )

    def attach(
        self,
        browser_ws_url: str,
        *,
        connection_factory: Callable[[str], CdpConnection] | None = None,
    ) -> CdpEventBus:
        """Subscribe to download events of one browser, replacing any earlier subscription."""
        self.detach()
        self.download_dir.mkdir(parents=True, exist_ok=True)
        bus = CdpEventBus(
            ws_url=browser_ws_url,
            on_event=lambda _conn, event: self.handle_event(event),
            setup=self._setup,
            name="download-tracker",
            connection_factory=connection_factory,
        )
        bus.start()
        self._bus = bus
        return bus

    def detach(self) -> None:
        bus, self._bus = self._bus, None
        if bus is not None:
            bus.stop()

    @property
    def attached(self) -> bool:
        return self._bus is not None and self._bus.running


__all__ = [
    "DOWNLOAD_SCHEME",
    "DownloadPathError",
    "DownloadRecord",
    "DownloadState",
    "DownloadTracker",
    "download_uri",
]
