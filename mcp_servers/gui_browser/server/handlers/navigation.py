"""
Navigation tool handlers - page navigation and history.
"""

from __future__ import annotations

from typing import Any

from ... import tools
from ..types import ToolContext, ToolResult


def _navigated(result: dict[str, Any], done: str) -> ToolResult:
    if result.get("timedOut"):
        return ToolResult.text(result["note"], data=result)
    return ToolResult.text(done, data=result)


def handle_navigate(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.navigate_to(ctx.session, args["url"], wait_load=args.get("wait_load", True), active=ctx.active)
    return _navigated(result, f"Navigated to {result['url']}")


def handle_back(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.go_back(ctx.session, active=ctx.active)
    return _navigated(result, f"Navigated back to {result.get('url', '')}")


def handle_forward(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.go_forward(ctx.session, active=ctx.active)
    return _navigated(result, f"Navigated forward to {result.get('url', '')}")


def handle_refresh(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.reload_page(ctx.session, ignore_cache=bool(args.get("ignore_cache", False)), active=ctx.active)
    return _navigated(result, f"Reloaded {result.get('url', '')}")


NAVIGATION_HANDLERS: dict[str, tuple] = {
    "navigate": (handle_navigate, True),
    "back": (handle_back, True),
    "forward": (handle_forward, True),
    "refresh": (handle_refresh, True),
}
