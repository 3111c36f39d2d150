"""
Tool handlers organized by domain.

All handlers follow the signature: (ctx, arguments) -> ToolResult
"""

from .content import CONTENT_HANDLERS
from .downloads import DOWNLOAD_HANDLERS
from .navigation import NAVIGATION_HANDLERS
from .session import SESSION_HANDLERS
from .tabs import TAB_HANDLERS
from .vision import VISION_HANDLERS

# Aggregate all handlers
ALL_HANDLERS: dict[str, tuple] = {
    **NAVIGATION_HANDLERS,
    **TAB_HANDLERS,
    **CONTENT_HANDLERS,
    **DOWNLOAD_HANDLERS,
    **VISION_HANDLERS,
    **SESSION_HANDLERS,
}

__all__ = [
    "ALL_HANDLERS",
    "CONTENT_HANDLERS",
    "DOWNLOAD_HANDLERS",
    "NAVIGATION_HANDLERS",
    "SESSION_HANDLERS",
    "TAB_HANDLERS",
    "VISION_HANDLERS",
]
