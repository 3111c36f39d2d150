from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .page import PageHandle, close_quietly
from .page_health import PageHealthProbe

logger = logging.getLogger("mcp.gui_browser.page_selector")


@dataclass(frozen=True)
class ActivePage:
    page: PageHandle
    index: int


class ActivePageSelector:
    """Pick the page tool calls should act on.

    Pages are scanned newest first. Priority: the first visible page wins outright;
    otherwise the first healthy page is remembered and scanning continues; a page
    that is neither gets one short last-resort check, and passing it ends the scan.
    Pages failing every check are closed. With nothing selected the first page of
    the list is returned at index 0.
    """

    def __init__(self, probe: PageHealthProbe | None = None) -> None:
        self.probe = probe or PageHealthProbe()

    def select(self, pages: Sequence[PageHandle]) -> ActivePage | None:
        if not pages:
            return None

        candidate: ActivePage | None = None
        for index in range(len(pages) - 1, -1, -1):
            page = pages[index]
            health = self.probe.check(page)
            logger.debug(
                "page_probe index=%s id=%s visible=%s healthy=%s",
                index,
                page.target_id,
                health.visible,
                health.healthy,
            )
            if health.visible:
                return ActivePage(page, index)
            if health.healthy:
                if candidate is None:
                    candidate = ActivePage(page, index)
                continue

            if self.probe.is_barely_responsive(page):
                logger.debug("page_probe_last_resort_ok index=%s id=%s", index, page.target_id)
                # A newer healthy-but-hidden page wins over this older barely responsive one.
                # Scanning stops here, so older pages are neither checked nor closed.
                return candidate or ActivePage(page, index)

            logger.error("closing_unresponsive_page index=%s id=%s url=%s", index, page.target_id, page.url)
            close_quietly(page)

        if candidate is not None:
            return candidate
        return ActivePage(pages[0], 0)


__all__ = ["ActivePage", "ActivePageSelector"]
