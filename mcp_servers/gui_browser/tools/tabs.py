"""Tab tools. Indices are positions in the page list at call time."""

from __future__ import annotations

from typing import Any

from ..page_selector import ActivePage
from ..session_manager import BrowserSessionManager, InvalidTabIndexError
from .base import SmartToolError, ensure_allowed_navigation, get_active_page


def _invalid_index(tool: str, exc: InvalidTabIndexError) -> SmartToolError:
    return SmartToolError(
        tool=tool,
        action="select",
        reason=str(exc),
        suggestion="Call tab_list to see valid indices",
        details={"index": exc.index},
    )


def list_tabs(session: BrowserSessionManager, *, active: ActivePage | None = None) -> dict[str, Any]:
    current = get_active_page(session, active)
    tabs = [tab.to_dict() for tab in session.tab_list()]
    return {
        "current": {"index": current.index, "title": current.page.title, "url": current.page.url},
        "tabs": tabs,
    }


def new_tab(session: BrowserSessionManager, url: str) -> dict[str, Any]:
    ensure_allowed_navigation(url, session.config)
    try:
        opened = session.new_tab(url)
    except TimeoutError:
        current = session.current
        return {"url": url, "tabIndex": current.index if current else None, "timedOut": True}
    except Exception as e:
        raise SmartToolError(
            tool="new_tab",
            action="open",
            reason=str(e),
            suggestion="Check URL is valid and the browser is running",
        ) from e
    return {"url": url, "tabIndex": opened.index, "target": opened.page.target_id}


def switch_tab(session: BrowserSessionManager, index: int) -> dict[str, Any]:
    try:
        switched = session.switch_tab(int(index))
    except InvalidTabIndexError as e:
        raise _invalid_index("switch_tab", e) from e
    return {"tabIndex": switched.index, "url": switched.page.url, "tabs": [t.to_dict() for t in session.tab_list()]}


def close_tab(session: BrowserSessionManager, index: int | None = None) -> dict[str, Any]:
    try:
        closed = session.close_tab(None if index is None else int(index))
    except InvalidTabIndexError as e:
        raise _invalid_index("close_tab", e) from e
    except Exception as e:
        raise SmartToolError(
            tool="close_tab",
            action="close",
            reason=str(e),
            suggestion="Call tab_list and retry with a valid index",
        ) from e
    return {"closed": closed}
