"""
Tool registry with dispatch table for the MCP server.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..tools.base import get_active_page
from .types import HandlerFunc, ToolContext, ToolResult

if TYPE_CHECKING:
    from ..session_manager import BrowserSessionManager

logger = logging.getLogger("mcp.gui_browser.registry")


class ToolRegistry:
    """Registry for tool handlers with automatic browser lifecycle management."""

    def __init__(self) -> None:
        # name -> (handler, requires_browser)
        self._handlers: dict[str, tuple[HandlerFunc, bool]] = {}

    def register(self, name: str, handler: HandlerFunc, requires_browser: bool = True) -> None:
        self._handlers[name] = (handler, requires_browser)

    def register_many(self, handlers: dict[str, tuple[HandlerFunc, bool]]) -> None:
        self._handlers.update(handlers)

    def get(self, name: str) -> tuple[HandlerFunc, bool] | None:
        return self._handlers.get(name)

    def has(self, name: str) -> bool:
        return name in self._handlers

    def dispatch(self, name: str, session: BrowserSessionManager, arguments: dict[str, Any]) -> ToolResult:
        """
        Dispatch a tool call.

        Tools that require the browser get a live browser and the current page
        resolved once, before the handler runs.

        Raises:
            KeyError: If tool not found
        """
        handler_info = self._handlers.get(name)
        if handler_info is None:
            raise KeyError(f"Unknown tool: {name}")

        handler, requires_browser = handler_info
        ctx = ToolContext(session=session)
        if requires_browser:
            ctx.active = get_active_page(session)
            logger.debug("tool=%s tab_index=%s target=%s", name, ctx.active.index, ctx.active.page.target_id)
        return handler(ctx, arguments)

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry()
    registry.register_many(ALL_HANDLERS)
    return registry
