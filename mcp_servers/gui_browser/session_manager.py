"""Browser session management.

One ``BrowserSessionManager`` owns one browser process, the options it was launched
with and the pointer to the page tool calls act on. ``SessionRegistry`` hands out
one manager per configuration identity; callers receive it explicitly instead of
reaching for a module-level singleton.

Threading model: tool calls may arrive concurrently. Launch is serialized and
idempotent; recovery is single-flight (a caller that finds a recovery running gets
``False`` back and must re-probe later rather than wait).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from .config import BrowserConfig, LaunchOptions, ProxySettings
from .console_log import ConsoleLog
from .downloads import DownloadTracker
from .http_client import BrowserNotLaunchedError
from .launcher import BrowserLauncher
from .page import PageHandle
from .page_selector import ActivePage, ActivePageSelector
from .screenshots import ScreenshotStore
from .session_cdp import CdpConnection, CdpEventBus

logger = logging.getLogger("mcp.gui_browser.session")

LauncherFactory = Callable[[BrowserConfig], BrowserLauncher]


class InvalidTabIndexError(IndexError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Invalid tab index: {index}")
        self.index = index


@dataclass(frozen=True)
class TabInfo:
    index: int
    title: str
    url: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "title": self.title, "url": self.url}


class BrowserSessionManager:
    def __init__(
        self,
        config: BrowserConfig,
        *,
        launcher_factory: LauncherFactory | None = None,
        selector: ActivePageSelector | None = None,
        downloads: DownloadTracker | None = None,
        console: ConsoleLog | None = None,
        screenshots: ScreenshotStore | None = None,
        page_bus_factory: Callable[..., CdpEventBus] | None = None,
    ) -> None:
        self.config = config
        self._launcher_factory = launcher_factory or BrowserLauncher
        self.selector = selector or ActivePageSelector()
        self.downloads = downloads or DownloadTracker(config.download_dir)
        self.console = console or ConsoleLog()
        self.screenshots = screenshots or ScreenshotStore(config.screenshot_limit)
        self._page_bus_factory = page_bus_factory or CdpEventBus

        self.launcher: BrowserLauncher | None = None
        self.launch_options: LaunchOptions | None = None
        self.is_launched = False
        self.is_recovery_in_progress = False
        self.current: ActivePage | None = None

        self._lock = threading.RLock()
        self._launch_lock = threading.RLock()
        self._recovery_lock = threading.Lock()
        self._page_bus: CdpEventBus | None = None
        self._page_bus_target: str | None = None

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def launch(self, options: LaunchOptions | None = None) -> None:
        """Launch the browser once; later calls return immediately while it is launched."""
        with self._launch_lock:
            if self.is_launched:
                return
            options = options or self.launch_options or self.config.launch_options()
            self.launch_options = options
            if self.launcher is None:
                self.launcher = self._launcher_factory(self.config)
            logger.info("browser_launch headless=%s type=%s", options.headless, options.browser_type)
            try:
                self.launcher.launch(options)
            except Exception:
                self.is_launched = False
                logger.exception("browser_launch_failed")
                raise
            self.is_launched = True
            self.current = None
            self._attach_downloads()

    def is_alive(self, auto_recover: bool = False) -> bool:
        if not self.is_launched or self.launcher is None:
            return False
        try:
            alive = bool(self.launcher.is_alive())
        except Exception as exc:  # noqa: BLE001
            logger.warning("browser_liveness_check_failed error=%s", exc)
            alive = False
        if alive:
            return True
        if auto_recover and not self.is_recovery_in_progress:
            logger.warning("browser_not_alive auto_recover=1")
            try:
                return self.recover()
            except Exception as exc:  # noqa: BLE001
                logger.error("browser_auto_recover_failed error=%s", exc)
                return False
        return False

    def recover(self) -> bool:
        """Replace a dead browser with a fresh one launched with the last known options.

        Returns False without doing anything when another recovery is running. Launch
        failures propagate to the caller.
        """
        with self._recovery_lock:
            if self.is_recovery_in_progress:
                logger.info("browser_recover_skipped reason=in_progress")
                return False
            self.is_recovery_in_progress = True
        try:
            # Concurrent launch() calls wait here until the replacement is up.
            with self._launch_lock:
                logger.info("browser_recover_start")
                self.is_launched = False
                self._detach_page_bus()
                old = self.launcher
                if old is not None:
                    try:
                        old.close()
                    except Exception as exc:  # noqa: BLE001
                        logger.debug("browser_recover_close_old_failed error=%s", exc)
                self.current = None
                self.launcher = self._launcher_factory(self.config)
                self.launch(self.launch_options)
                logger.info("browser_recovered")
                return True
        finally:
            self.is_recovery_in_progress = False

    def close(self) -> None:
        """Best-effort shutdown; the session always ends up not launched."""
        launcher = self.launcher
        try:
            if launcher is not None:
                launcher.close()
            logger.info("browser_closed")
        except Exception as exc:  # noqa: BLE001
            logger.error("browser_close_failed error=%s", exc)
        finally:
            self.is_launched = False
            self._detach_page_bus()
            self.downloads.detach()
            self.current = None

    def close_all_pages(self) -> None:
        """Close every page but the last; the last one is blanked instead of closed."""
        if not self.is_launched:
            return
        pages = self._require_launcher().list_pages()
        if not pages:
            return
        for page in pages[:-1]:
            try:
                page.close()
            except Exception as exc:  # noqa: BLE001
                logger.warning("close_page_failed id=%s error=%s", page.target_id, exc)
        last = pages[-1]
        try:
            last.navigate("about:blank")
        except Exception as exc:  # noqa: BLE001
            logger.warning("blank_last_page_failed id=%s error=%s", last.target_id, exc)
        self._set_current(ActivePage(last, 0))

    # ─────────────────────────────────────────────────────────────────────────
    # Active page
    # ─────────────────────────────────────────────────────────────────────────

    def ensure(self) -> ActivePage:
        """Guarantee a live browser and return the page tool calls should act on."""
        with self._lock:
            if not self.is_launched:
                self.launch(self.launch_options)
            elif not self.is_alive(auto_recover=True):
                raise BrowserNotLaunchedError("Browser is not running and could not be recovered")

            launcher = self._require_launcher()
            pages = self._reuse_current(launcher.list_pages())
            if not pages:
                active = ActivePage(launcher.new_page(), 0)
            elif self.current is None:
                active = ActivePage(pages[0], 0)
            else:
                active = self.selector.select(pages) or ActivePage(pages[0], 0)
            for page in pages:
                if page is not active.page:
                    page.disconnect()
            self._activate(active)
            return active

    @property
    def current_index(self) -> int:
        return self.current.index if self.current is not None else 0

    @property
    def current_page(self) -> PageHandle | None:
        return self.current.page if self.current is not None else None

    def _reuse_current(self, pages: list[PageHandle]) -> list[PageHandle]:
        # Keep the live connection of the current page instead of a fresh handle.
        current = self.current_page
        if current is None:
            return pages
        return [current if page == current else page for page in pages]

    def _set_current(self, active: ActivePage | None) -> None:
        if active is None or active.page.target_id != self._page_bus_target:
            self._detach_page_bus()
        self.current = active

    def _activate(self, active: ActivePage) -> None:
        self._set_current(active)
        user_agent = (self.launch_options.user_agent if self.launch_options else "") or self.config.user_agent
        if user_agent:
            try:
                active.page.set_user_agent(user_agent)
            except Exception as exc:  # noqa: BLE001
                logger.warning("set_user_agent_failed id=%s error=%s", active.page.target_id, exc)
        self._attach_page_bus(active.page)

    # ─────────────────────────────────────────────────────────────────────────
    # Tabs
    # ─────────────────────────────────────────────────────────────────────────

    def tab_list(self) -> list[TabInfo]:
        """Tabs with indices as of this call (indices shift when tabs close)."""
        pages = self._require_launcher().list_pages()
        return [TabInfo(index, page.title, page.url) for index, page in enumerate(pages)]

    def new_tab(self, url: str) -> ActivePage:
        self.ensure()
        launcher = self._require_launcher()
        page = launcher.new_page("about:blank")
        if url and url != "about:blank":
            page.navigate(url)
        page.bring_to_front()
        index = next((i for i, p in enumerate(launcher.list_pages()) if p == page), 0)
        active = ActivePage(page, index)
        self._activate(active)
        logger.info("tab_opened index=%s url=%s", index, url)
        return active

    def switch_tab(self, index: int) -> ActivePage:
        pages = self._require_launcher().list_pages()
        if not 0 <= index < len(pages):
            raise InvalidTabIndexError(index)
        page = pages[index]
        page.bring_to_front()
        active = ActivePage(page, index)
        self._activate(active)
        logger.info("tab_switched index=%s id=%s", index, page.target_id)
        return active

    def close_tab(self, index: int | None = None) -> int:
        """Close the tab at ``index``, or the current tab. Returns the closed index."""
        if index is None:
            active = self.ensure()
            page, index = active.page, active.index
        else:
            pages = self._require_launcher().list_pages()
            if not 0 <= index < len(pages):
                raise InvalidTabIndexError(index)
            page = pages[index]
        page.close()
        if self.current is not None and self.current.page == page:
            self._set_current(None)
        logger.info("tab_closed index=%s id=%s", index, page.target_id)
        return index

    def _require_launcher(self) -> BrowserLauncher:
        if not self.is_launched or self.launcher is None:
            raise BrowserNotLaunchedError("Browser is not launched")
        return self.launcher

    # ─────────────────────────────────────────────────────────────────────────
    # Event subscriptions
    # ─────────────────────────────────────────────────────────────────────────

    def _attach_downloads(self) -> None:
        launcher = self.launcher
        if launcher is None:
            return
        try:
            self.downloads.attach(launcher.browser_ws_url())
        except Exception as exc:  # noqa: BLE001
            logger.warning("download_tracking_unavailable error=%s", exc)

    def _proxy_settings(self) -> ProxySettings:
        options = self.launch_options or self.config.launch_options()
        return options.proxy_settings

    def _page_setup(self, conn: CdpConnection) -> None:
        conn.send("Runtime.enable")
        conn.send("Log.enable")
        if self._proxy_settings().has_credentials:
            conn.send("Fetch.enable", {"handleAuthRequests": True})

    def _on_page_event(self, conn: CdpConnection, event: dict[str, Any]) -> None:
        method = event.get("method")
        params = event.get("params") if isinstance(event.get("params"), dict) else {}
        if method == "Fetch.authRequired":
            proxy = self._proxy_settings()
            conn.send(
                "Fetch.continueWithAuth",
                {
                    "requestId": params.get("requestId"),
                    "authChallengeResponse": {
                        "response": "ProvideCredentials",
                        "username": proxy.username,
                        "password": proxy.password,
                    },
                },
            )
        elif method == "Fetch.requestPaused":
            conn.send("Fetch.continueRequest", {"requestId": params.get("requestId")})
        else:
            self.console.handle_event(event)

    def _attach_page_bus(self, page: PageHandle) -> None:
        if self._page_bus is not None and self._page_bus_target == page.target_id and self._page_bus.running:
            return
        self._detach_page_bus()
        if not page.ws_url:
            return
        bus = self._page_bus_factory(
            ws_url=page.ws_url,
            on_event=self._on_page_event,
            setup=self._page_setup,
            name="page-events",
        )
        bus.start()
        self._page_bus = bus
        self._page_bus_target = page.target_id

    def _detach_page_bus(self) -> None:
        bus, self._page_bus = self._page_bus, None
        self._page_bus_target = None
        if bus is not None:
            with suppress(Exception):
                bus.stop()


class SessionRegistry:
    """One ``BrowserSessionManager`` per configuration identity."""

    def __init__(self, factory: Callable[[BrowserConfig], BrowserSessionManager] | None = None) -> None:
        self._factory = factory or BrowserSessionManager
        self._sessions: dict[tuple[str, str, int], BrowserSessionManager] = {}
        self._lock = threading.Lock()

    def get(self, config: BrowserConfig) -> BrowserSessionManager:
        key = config.identity()
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = self._factory(config)
                self._sessions[key] = session
            return session

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = [
    "BrowserSessionManager",
    "InvalidTabIndexError",
    "LauncherFactory",
    "SessionRegistry",
    "TabInfo",
]
