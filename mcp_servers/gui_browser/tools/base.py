"""
Base utilities for browser tools.

Provides:
- SmartToolError: Structured errors for AI agents
- ensure_allowed_navigation: scheme/allowlist check for navigation targets
- get_active_page: resolve the page a tool acts on
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass, field
from typing import Any

from ..config import BrowserConfig
from ..page_selector import ActivePage
from ..session_manager import BrowserSessionManager


# Error Handling
@dataclass
class SmartToolError(Exception):
    """Structured error with context for AI agents."""

    tool: str
    action: str
    reason: str
    suggestion: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.tool}] {self.action} failed: {self.reason}. Suggestion: {self.suggestion}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "tool": self.tool,
            "action": self.action,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "details": self.details,
        }


# URL Validation
def ensure_allowed_navigation(url: str, config: BrowserConfig) -> None:
    """Navigation check: about:/data:/blob: always, file: only without an allowlist."""
    parsed = urllib.parse.urlparse(url)
    reason: str | None = None
    if parsed.scheme in ("about", "data", "blob"):
        return
    if parsed.scheme == "file":
        if config.allow_hosts:
            reason = "file:// navigation is disabled while MCP_ALLOW_HOSTS is set"
    elif parsed.scheme not in ("http", "https"):
        reason = f"Unsupported scheme: {parsed.scheme or '(none)'} (allowed: http, https, about, data, blob, file)"
    elif not config.is_host_allowed(parsed.hostname or ""):
        reason = f"Host {parsed.hostname} is not in allowlist"

    if reason:
        raise SmartToolError(
            tool="navigate",
            action="validate",
            reason=reason,
            suggestion="Use an absolute http(s) URL on an allowed host",
            details={"url": url},
        )


# Session Management
def get_active_page(session: BrowserSessionManager, active: ActivePage | None = None) -> ActivePage:
    """Return ``active`` or make sure the browser is up and pick the current page."""
    if active is not None:
        return active
    try:
        return session.ensure()
    except Exception as e:
        raise SmartToolError(
            tool="session",
            action="connect",
            reason=str(e),
            suggestion="Check MCP_BROWSER_BINARY and that the CDP port is free",
        ) from e
