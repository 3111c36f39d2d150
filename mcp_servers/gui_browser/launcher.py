"""BrowserLauncher: the handle for one browser process reachable over CDP."""

from __future__ import annotations

import contextlib
import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config import BrowserConfig, LaunchOptions, expand_path
from .http_client import BrowserLaunchError, HttpClientError, cdp_http_url, http_get_json
from .page import ConnectionFactory, PageHandle
from .session_cdp import CdpConnection

logger = logging.getLogger("mcp.gui_browser.launcher")

# Flags that keep an automated browser quiet and predictable.
AUTOMATION_FLAGS: tuple[str, ...] = (
    "--no-sandbox",
    "--mute-audio",
    "--disable-gpu",
    "--disable-http2",
    "--disable-blink-features=AutomationControlled",
    "--disable-infobars",
    "--disable-background-timer-throttling",
    "--disable-popup-blocking",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-window-activation",
    "--disable-focus-on-load",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-site-isolation-trials",
)

# Firefox rejects these chrome-only switches.
_CHROME_ONLY_FLAGS = {"--disable-features=IsolateOrigins,site-per-process"}


@dataclass
class LaunchResult:
    command: list[str]
    started: bool
    message: str
    log_path: str | None = None


def _tail_text(path: str | None, max_chars: int = 4000) -> str | None:
    if not path:
        return None
    try:
        raw = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    return raw[-max_chars:]


class BrowserLauncher:
    def __init__(self, config: BrowserConfig | None = None, *, connection_factory: ConnectionFactory | None = None) -> None:
        self.config = config or BrowserConfig.from_env()
        self.process: subprocess.Popen | None = None
        self._connection_factory = connection_factory

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def build_launch_command(self, options: LaunchOptions) -> list[str]:
        width, height = options.viewport_width, options.viewport_height
        window_flag = f"--window-size={width},{height + 90}"
        flags = [
            f"--remote-debugging-port={self.config.cdp_port}",
            "--remote-allow-origins=*",
            *AUTOMATION_FLAGS,
            window_flag,
        ]
        if options.user_data_dir:
            flags.append(f"--user-data-dir={expand_path(options.user_data_dir)}")
        if options.headless:
            flags.append("--headless=new")
        proxy = options.proxy_settings
        if proxy.server:
            # Credentials never go on the command line; they are answered over CDP.
            flags.append(f"--proxy-server={proxy.server}")
        if options.proxy_bypass_list:
            flags.append(f"--proxy-bypass-list={options.proxy_bypass_list}")
        flags.extend(options.args)

        if options.browser_type == "firefox":
            flags = [f for f in flags if f not in _CHROME_ONLY_FLAGS and f != window_flag]
        flags = [f for f in flags if f]
        return [options.executable_path or self.config.binary_path, *flags]

    def cdp_ready(self, timeout: float = 0.4) -> bool:
        """Return True if the CDP HTTP endpoint responds."""
        try:
            version = http_get_json(cdp_http_url(self.config.cdp_port, "/json/version"), timeout=timeout)
        except HttpClientError:
            return False
        return isinstance(version, dict)

    def launch(self, options: LaunchOptions | None = None) -> LaunchResult:
        """Start the browser and wait for CDP; attach when CDP already answers."""
        options = options or self.config.launch_options()
        if self.cdp_ready():
            logger.info("cdp_already_listening port=%s", self.config.cdp_port)
            return LaunchResult([], False, "Attached to browser already listening on CDP port")

        if options.user_data_dir:
            with contextlib.suppress(OSError):
                Path(expand_path(options.user_data_dir)).mkdir(parents=True, exist_ok=True)

        cmd = self.build_launch_command(options)
        log_path: str | None = None
        popen_kwargs: dict[str, Any] = {"stdin": subprocess.DEVNULL, "start_new_session": True}
        if options.headless:
            popen_kwargs.update({"stdout": subprocess.DEVNULL, "stderr": subprocess.DEVNULL})
            self._spawn(cmd, popen_kwargs, log_path)
        else:
            log_path = self._make_log_path()
            with open(log_path, "ab", buffering=0) as log_fh:
                popen_kwargs.update({"stdout": log_fh, "stderr": log_fh})
                self._spawn(cmd, popen_kwargs, log_path)

        deadline = time.monotonic() + max(0.5, float(self.config.launch_timeout))
        while time.monotonic() < deadline:
            if self.cdp_ready():
                logger.info("browser_launched port=%s pid=%s", self.config.cdp_port, self.process.pid)
                return LaunchResult(cmd, True, "Browser launched", log_path=log_path)
            if self.process is not None and self.process.poll() is not None:
                raise BrowserLaunchError(
                    f"Browser exited during startup (code {self.process.returncode})",
                    command=cmd,
                    log_tail=_tail_text(log_path),
                )
            time.sleep(0.1)
        self.close()
        raise BrowserLaunchError("Browser launch timed out", command=cmd, log_tail=_tail_text(log_path))

    def _spawn(self, cmd: list[str], popen_kwargs: dict[str, Any], log_path: str | None) -> None:
        try:
            self.process = subprocess.Popen(cmd, **popen_kwargs)
        except OSError as exc:
            raise BrowserLaunchError(str(exc), command=cmd, log_tail=_tail_text(log_path)) from exc

    def _make_log_path(self) -> str:
        log_dir = Path(expand_path(self.config.download_dir or ".")).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / f"browser_launch_{int(time.time() * 1000)}.log")

    def is_alive(self) -> bool:
        """Liveness: the owned process is running and CDP answers /json/version."""
        proc = self.process
        if proc is not None and proc.poll() is not None:
            return False
        return self.cdp_ready(timeout=2.0)

    def close(self, *, timeout: float = 2.0) -> None:
        """Stop the owned browser process: terminate, then kill after ``timeout``."""
        proc = self.process
        if proc is None:
            return
        if proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=max(0.1, float(timeout)))
            except subprocess.TimeoutExpired:
                proc.kill()
                with contextlib.suppress(subprocess.TimeoutExpired):
                    proc.wait(timeout=1.0)
        self.process = None

    # ─────────────────────────────────────────────────────────────────────────
    # Targets
    # ─────────────────────────────────────────────────────────────────────────

    def browser_ws_url(self) -> str:
        version = http_get_json(cdp_http_url(self.config.cdp_port, "/json/version"), timeout=self.config.http_timeout)
        ws_url = version.get("webSocketDebuggerUrl") if isinstance(version, dict) else None
        if not ws_url:
            raise HttpClientError("CDP browser WebSocket URL not found")
        return str(ws_url)

    def list_targets(self) -> list[dict[str, Any]]:
        targets = http_get_json(cdp_http_url(self.config.cdp_port, "/json/list"), timeout=self.config.http_timeout)
        return [t for t in targets if isinstance(t, dict)] if isinstance(targets, list) else []

    def _page(self, target: dict[str, Any]) -> PageHandle:
        return PageHandle(
            target,
            cdp_port=self.config.cdp_port,
            timeout=self.config.http_timeout,
            connection_factory=self._connection_factory,
        )

    def list_pages(self) -> list[PageHandle]:
        """Open pages, oldest first (/json/list reports the newest first)."""
        pages = [self._page(t) for t in self.list_targets() if t.get("type") == "page"]
        pages.reverse()
        return pages

    def new_page(self, url: str = "about:blank") -> PageHandle:
        conn = CdpConnection(self.browser_ws_url(), timeout=self.config.http_timeout)
        try:
            result = conn.send("Target.createTarget", {"url": url})
        finally:
            conn.close()
        target_id = result.get("targetId")
        if not target_id:
            raise HttpClientError("Failed to create browser tab")
        for target in self.list_targets():
            if target.get("id") == target_id:
                return self._page(target)
        return self._page({"id": target_id, "url": url})


__all__ = ["AUTOMATION_FLAGS", "BrowserLauncher", "LaunchResult"]
