from __future__ import annotations

import time
from typing import Any

import pytest

from mcp_servers.gui_browser.config import BrowserConfig
from mcp_servers.gui_browser.http_client import HttpClientError
from mcp_servers.gui_browser.page_health import LAST_RESORT_SCRIPT, RESPONSIVE_SCRIPT, VISIBILITY_SCRIPT


class DummyPage:
    """Stands in for PageHandle: scripted probe answers, recorded calls."""

    def __init__(
        self,
        target_id: str,
        *,
        url: str = "about:blank",
        title: str = "",
        visible: bool = False,
        healthy: bool = True,
        barely: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.target_id = target_id
        self.url = url
        self.title = title
        self.ws_url = ""
        self.visible = visible
        self.healthy = healthy
        self.barely = barely
        self.delay = delay
        self.closed = False
        self.calls: list[str] = []
        self.user_agent: str | None = None

    def __repr__(self) -> str:
        return f"DummyPage({self.target_id})"

    def evaluate(self, expression: str, *, timeout: float | None = None) -> Any:  # noqa: ARG002
        self.calls.append(expression)
        if self.delay:
            time.sleep(self.delay)
        if expression == VISIBILITY_SCRIPT:
            if not (self.visible or self.healthy):
                raise HttpClientError("target crashed")
            return self.visible
        if expression == RESPONSIVE_SCRIPT:
            if not self.healthy:
                raise HttpClientError("target crashed")
            return 2
        if expression == LAST_RESORT_SCRIPT:
            if not self.barely:
                raise HttpClientError("target crashed")
            return "complete"
        return None

    def close(self) -> None:
        self.calls.append("close")
        self.closed = True

    def disconnect(self) -> None:
        pass

    def navigate(self, url: str, *, wait_load: bool = True, timeout: float = 30.0) -> str:  # noqa: ARG002
        self.calls.append(f"navigate:{url}")
        self.url = url
        return url

    def bring_to_front(self) -> None:
        self.calls.append("bring_to_front")

    def set_user_agent(self, user_agent: str) -> None:
        self.user_agent = user_agent

    def content(self) -> str:
        return "<html><body><h1>Title</h1><p>Hello <b>world</b></p></body></html>"

    def inner_text(self) -> str:
        return "Title\nHello world"


class DummyLauncher:
    """Stands in for BrowserLauncher: no process, pages kept in a list."""

    def __init__(self, config: BrowserConfig, pages: list[DummyPage] | None = None) -> None:
        self.config = config
        self.pages: list[DummyPage] = list(pages or [])
        self.alive = True
        self.launch_calls = 0
        self.close_calls = 0
        self.fail_launch: Exception | None = None

    def launch(self, options: Any = None) -> None:  # noqa: ARG002
        self.launch_calls += 1
        if self.fail_launch is not None:
            raise self.fail_launch

    def is_alive(self) -> bool:
        return self.alive

    def close(self) -> None:
        self.close_calls += 1

    def list_pages(self) -> list[DummyPage]:
        self.pages = [p for p in self.pages if not p.closed]
        return list(self.pages)

    def new_page(self, url: str = "about:blank") -> DummyPage:
        page = DummyPage(f"new-{len(self.pages)}", url=url)
        self.pages.append(page)
        return page

    def browser_ws_url(self) -> str:
        raise HttpClientError("no browser websocket in tests")


class FirstPageSelector:
    """Selector stub: always the newest page."""

    def select(self, pages: list[DummyPage]):  # noqa: ANN201
        from mcp_servers.gui_browser.page_selector import ActivePage

        return ActivePage(pages[-1], len(pages) - 1) if pages else None


@pytest.fixture
def config(tmp_path) -> BrowserConfig:  # noqa: ANN001
    return BrowserConfig(
        binary_path="/usr/bin/chromium",
        profile_path=str(tmp_path / "profile"),
        cdp_port=9333,
        download_dir=str(tmp_path / "downloads"),
    )


@pytest.fixture
def make_session(config):  # noqa: ANN001, ANN201
    """Build a BrowserSessionManager wired to DummyLauncher instances."""
    from mcp_servers.gui_browser.session_manager import BrowserSessionManager

    def _make(pages: list[DummyPage] | None = None, **kwargs: Any):  # noqa: ANN202
        launchers: list[DummyLauncher] = []

        def factory(cfg: BrowserConfig) -> DummyLauncher:
            launcher = DummyLauncher(cfg, pages if not launchers else None)
            launchers.append(launcher)
            return launcher

        kwargs.setdefault("selector", FirstPageSelector())
        session = BrowserSessionManager(kwargs.pop("config", config), launcher_factory=factory, **kwargs)
        session.created_launchers = launchers
        return session

    return _make
