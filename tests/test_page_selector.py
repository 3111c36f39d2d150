from __future__ import annotations

from conftest import DummyPage
from mcp_servers.gui_browser.page_health import PageHealthProbe
from mcp_servers.gui_browser.page_selector import ActivePageSelector


def _select(pages):  # noqa: ANN001, ANN202
    probe = PageHealthProbe(visibility_timeout=1.0, responsive_timeout=1.0, last_resort_timeout=1.0)
    try:
        return ActivePageSelector(probe).select(pages)
    finally:
        probe.shutdown()


def test_empty_list_selects_nothing() -> None:
    assert _select([]) is None


def test_newest_visible_page_wins() -> None:
    pages = [DummyPage("old", visible=True), DummyPage("new", visible=True)]

    active = _select(pages)

    assert active.page is pages[1]
    assert active.index == 1


def test_visible_beats_healthy_newer_page() -> None:
    pages = [DummyPage("old", visible=True), DummyPage("new", visible=False, healthy=True)]

    active = _select(pages)

    assert active.page is pages[0]
    assert active.index == 0


def test_first_healthy_page_is_kept_when_nothing_is_visible() -> None:
    pages = [DummyPage("a"), DummyPage("b"), DummyPage("c")]

    active = _select(pages)

    assert active.page is pages[2]
    assert active.index == 2


def test_dead_pages_are_closed_and_first_page_returned() -> None:
    pages = [DummyPage("a", healthy=False), DummyPage("b", healthy=False)]

    active = _select(pages)

    assert all(p.closed for p in pages)
    assert active.page is pages[0]
    assert active.index == 0


def test_barely_responsive_page_stops_scan() -> None:
    pages = [DummyPage("a", visible=True), DummyPage("b", healthy=False, barely=True)]

    active = _select(pages)

    assert active.page is pages[1]
    assert active.index == 1
    # The older page was never probed.
    assert pages[0].calls == []


def test_barely_responsive_page_returns_existing_candidate() -> None:
    pages = [
        DummyPage("a", visible=True),
        DummyPage("b", healthy=False, barely=True),
        DummyPage("c", healthy=True),
    ]

    active = _select(pages)

    assert active.page is pages[2]
    assert active.index == 2
    assert not pages[1].closed
    # The visible page behind the barely responsive one is not reached.
    assert pages[0].calls == []


def test_dead_page_is_closed_but_healthy_one_selected() -> None:
    pages = [DummyPage("a", healthy=True), DummyPage("b", healthy=False)]

    active = _select(pages)

    assert pages[1].closed
    assert not pages[0].closed
    assert active.page is pages[0]
