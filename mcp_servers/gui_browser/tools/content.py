"""Page content extraction: markdown, visible text and raw HTML."""

from __future__ import annotations

from typing import Any

from markdownify import markdownify

from ..page_selector import ActivePage
from ..session_manager import BrowserSessionManager
from .base import SmartToolError, get_active_page


def _extract(session: BrowserSessionManager, active: ActivePage | None, tool: str, read) -> str:  # noqa: ANN001
    current = get_active_page(session, active)
    try:
        return read(current.page)
    except Exception as e:
        raise SmartToolError(
            tool=tool,
            action="extract",
            reason=str(e),
            suggestion="Wait for the page to finish loading and retry",
        ) from e


def html_to_markdown(html: str) -> str:
    markdown = markdownify(html, heading_style="ATX")
    lines = [line.rstrip() for line in markdown.splitlines()]
    # Collapse runs of blank lines left by stripped markup.
    out: list[str] = []
    for line in lines:
        if not line and out and not out[-1]:
            continue
        out.append(line)
    return "\n".join(out).strip()


def get_markdown(session: BrowserSessionManager, *, active: ActivePage | None = None) -> dict[str, Any]:
    html = _extract(session, active, "get_markdown", lambda page: page.content())
    return {"markdown": html_to_markdown(html)}


def get_text(session: BrowserSessionManager, *, active: ActivePage | None = None) -> dict[str, Any]:
    return {"text": _extract(session, active, "get_text", lambda page: page.inner_text())}


def get_html(session: BrowserSessionManager, *, active: ActivePage | None = None) -> dict[str, Any]:
    return {"html": _extract(session, active, "get_html", lambda page: page.content())}
