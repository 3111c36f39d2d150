"""Download handlers."""

from __future__ import annotations

from typing import Any

from ... import tools
from ..types import ToolContext, ToolResult


def handle_get_download_list(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(tools.get_download_list(ctx.session))


DOWNLOAD_HANDLERS: dict[str, tuple] = {
    "get_download_list": (handle_get_download_list, False),
}
