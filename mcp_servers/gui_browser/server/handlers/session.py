"""Browser lifecycle handlers."""

from __future__ import annotations

from typing import Any

from ..types import ToolContext, ToolResult


def handle_close_all_pages(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    ctx.session.close_all_pages()
    return ToolResult.text("Closed all pages except one")


def handle_close_browser(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    ctx.session.close()
    return ToolResult.text("Browser closed successfully")


SESSION_HANDLERS: dict[str, tuple] = {
    "close_all_pages": (handle_close_all_pages, False),
    "close_browser": (handle_close_browser, False),
}
