"""
Tab tool handlers.
"""

from __future__ import annotations

from typing import Any

from ... import tools
from ..types import ToolContext, ToolResult


def _format_tabs(tabs: list[dict[str, Any]]) -> str:
    return "\n".join(f"[{tab['index']}] {tab['title']} ({tab['url']})" for tab in tabs)


def handle_new_tab(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.new_tab(ctx.session, args["url"])
    text = f"Opened new tab with URL: {result['url']}"
    if result.get("timedOut"):
        text += " (load timeout, but page might still be usable)"
    return ToolResult.text(text, data=result)


def handle_close_tab(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    index = args.get("index")
    result = tools.close_tab(ctx.session, index)
    label = "current tab" if index is None else "tab"
    return ToolResult.text(f"Closed {label} [{result['closed']}]", data=result)


def handle_switch_tab(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.switch_tab(ctx.session, args["index"])
    text = f"Switched to tab {result['tabIndex']}, All Tabs: \n{_format_tabs(result['tabs'])}"
    return ToolResult.text(text, data=result)


def handle_tab_list(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.list_tabs(ctx.session, active=ctx.active)
    current = result["current"]
    text = f"Current Tab: [{current['index']}] {current['title']}\nAll Tabs: \n{_format_tabs(result['tabs'])}"
    return ToolResult.text(text, data=result)


TAB_HANDLERS: dict[str, tuple] = {
    "new_tab": (handle_new_tab, False),
    "close_tab": (handle_close_tab, True),
    "switch_tab": (handle_switch_tab, True),
    "tab_list": (handle_tab_list, True),
}
