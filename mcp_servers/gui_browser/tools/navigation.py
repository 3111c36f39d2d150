"""
Navigation tools.

Provides:
- navigate_to: Navigate to URL
- go_back: Browser history back
- go_forward: Browser history forward
- reload_page: Reload current page

A navigation that times out is reported, not raised: the page is often usable anyway.
"""

from __future__ import annotations

import logging
from typing import Any

from ..page_selector import ActivePage
from ..session_manager import BrowserSessionManager
from .base import SmartToolError, ensure_allowed_navigation, get_active_page

logger = logging.getLogger("mcp.gui_browser.tools.navigation")

TIMEOUT_NOTE = "page might still be usable"


def navigate_to(
    session: BrowserSessionManager,
    url: str,
    wait_load: bool = True,
    *,
    active: ActivePage | None = None,
) -> dict[str, Any]:
    """Navigate the active page to ``url``."""
    ensure_allowed_navigation(url, session.config)
    current = get_active_page(session, active)
    try:
        current.page.navigate(url, wait_load=wait_load)
    except TimeoutError as e:
        logger.warning("navigate_timeout url=%s error=%s", url, e)
        return {"url": url, "timedOut": True, "note": f"Navigation timeout, but {TIMEOUT_NOTE}"}
    except Exception as e:
        raise SmartToolError(
            tool="navigate",
            action="navigate",
            reason=str(e),
            suggestion="Check URL is valid and accessible",
        ) from e
    logger.info("navigate_complete url=%s", url)
    return {"url": url, "target": current.page.target_id, "tabIndex": current.index}


def _history(session: BrowserSessionManager, active: ActivePage | None, *, forward: bool) -> dict[str, Any]:
    tool = "go_forward" if forward else "go_back"
    current = get_active_page(session, active)
    try:
        moved = current.page.go_forward() if forward else current.page.go_back()
        url = current.page.get_url()
    except TimeoutError as e:
        logger.warning("%s_timeout error=%s", tool, e)
        return {"moved": True, "timedOut": True, "note": f"History navigation timeout, but {TIMEOUT_NOTE}"}
    except Exception as e:
        raise SmartToolError(
            tool=tool,
            action="navigate",
            reason=str(e),
            suggestion="Ensure the page is responsive",
        ) from e
    if not moved:
        raise SmartToolError(
            tool=tool,
            action="navigate",
            reason="no history entry in that direction",
            suggestion="Ensure there is forward history" if forward else "Ensure there is history to go back to",
        )
    return {"moved": True, "url": url}


def go_back(session: BrowserSessionManager, *, active: ActivePage | None = None) -> dict[str, Any]:
    return _history(session, active, forward=False)


def go_forward(session: BrowserSessionManager, *, active: ActivePage | None = None) -> dict[str, Any]:
    return _history(session, active, forward=True)


def reload_page(
    session: BrowserSessionManager,
    ignore_cache: bool = False,
    *,
    active: ActivePage | None = None,
) -> dict[str, Any]:
    """Reload the current page."""
    current = get_active_page(session, active)
    try:
        current.page.reload(ignore_cache=ignore_cache)
        url = current.page.get_url()
    except TimeoutError as e:
        logger.warning("reload_timeout error=%s", e)
        return {"timedOut": True, "note": f"Reload timeout, but {TIMEOUT_NOTE}"}
    except Exception as e:
        raise SmartToolError(
            tool="reload",
            action="reload",
            reason=str(e),
            suggestion="Ensure page is responsive",
        ) from e
    return {"url": url}
