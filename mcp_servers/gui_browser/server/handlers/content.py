"""
Content extraction handlers.
"""

from __future__ import annotations

from typing import Any

from ... import tools
from ..types import ToolContext, ToolResult


def handle_get_markdown(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.get_markdown(ctx.session, active=ctx.active)
    return ToolResult.text(result["markdown"], data=result)


def handle_get_text(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.get_text(ctx.session, active=ctx.active)
    return ToolResult.text(result["text"], data=result)


def handle_get_html(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.get_html(ctx.session, active=ctx.active)
    return ToolResult.text(result["html"], data=result)


CONTENT_HANDLERS: dict[str, tuple] = {
    "get_markdown": (handle_get_markdown, True),
    "get_text": (handle_get_text, True),
    "get_html": (handle_get_html, True),
}
