"""MCP resources: console output, named screenshots and downloaded files."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from .downloads import DOWNLOAD_SCHEME, DownloadPathError
from .screenshots import SCREENSHOT_SCHEME
from .session_manager import BrowserSessionManager

CONSOLE_LOGS_URI = "console://logs"

_TEXT_MIME_EXTRA = {
    "application/json",
    "application/javascript",
    "application/xml",
    "application/x-yaml",
    "image/svg+xml",
}


class ResourceNotFoundError(KeyError):
    def __init__(self, uri: str) -> None:
        super().__init__(uri)
        self.uri = uri

    def __str__(self) -> str:
        return f"Resource not found: {self.uri}"


@dataclass
class ResourceContent:
    uri: str
    mime_type: str
    text: str | None = None
    blob: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"uri": self.uri, "mimeType": self.mime_type}
        if self.blob is not None:
            out["blob"] = self.blob
        else:
            out["text"] = self.text or ""
        return out


def guess_mime_type(filename: str) -> str:
    mime, _ = mimetypes.guess_type(filename)
    return mime or "application/octet-stream"


def is_text_mime(mime_type: str) -> bool:
    return mime_type.startswith("text/") or mime_type in _TEXT_MIME_EXTRA


def list_resources(session: BrowserSessionManager) -> list[dict[str, Any]]:
    resources: list[dict[str, Any]] = [
        {"uri": CONSOLE_LOGS_URI, "mimeType": "text/plain", "name": "Browser console logs"},
    ]
    for shot in session.screenshots.list():
        resources.append(
            {
                "uri": shot.uri,
                "mimeType": "image/png",
                "name": f"Screenshot: {shot.name}",
                "description": f"{shot.width}x{shot.height} PNG",
            }
        )
    for record in session.downloads.list():
        resources.append(
            {
                "uri": record.resource_uri,
                "mimeType": guess_mime_type(record.suggested_filename),
                "name": f"Download: {record.suggested_filename}",
                "description": f"{record.state} {record.progress:.0f}%",
            }
        )
    return resources


def read_resource(session: BrowserSessionManager, uri: str) -> ResourceContent:
    if uri == CONSOLE_LOGS_URI:
        return ResourceContent(uri=uri, mime_type="text/plain", text=session.console.text())

    if uri.startswith(SCREENSHOT_SCHEME):
        shot = session.screenshots.get(unquote(uri[len(SCREENSHOT_SCHEME) :]))
        if shot is None:
            raise ResourceNotFoundError(uri)
        return ResourceContent(uri=uri, mime_type="image/png", blob=shot.data)

    if uri.startswith(DOWNLOAD_SCHEME):
        filename = unquote(uri[len(DOWNLOAD_SCHEME) :])
        record = session.downloads.find_by_filename(filename)
        if record is None:
            raise ResourceNotFoundError(uri)
        try:
            raw = session.downloads.path_for(record).read_bytes()
        except (DownloadPathError, OSError) as exc:
            raise ResourceNotFoundError(uri) from exc
        mime_type = guess_mime_type(filename)
        if is_text_mime(mime_type):
            return ResourceContent(uri=uri, mime_type=mime_type, text=raw.decode("utf-8", errors="replace"))
        return ResourceContent(uri=uri, mime_type=mime_type, blob=base64.b64encode(raw).decode("ascii"))

    raise ResourceNotFoundError(uri)


__all__ = [
    "CONSOLE_LOGS_URI",
    "ResourceContent",
    "ResourceNotFoundError",
    "guess_mime_type",
    "list_resources",
    "read_resource",
]
