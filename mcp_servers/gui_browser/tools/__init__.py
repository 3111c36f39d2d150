"""
Browser tools organized by domain.

- base: errors, navigation allowlist, active page resolution
- navigation: navigate, history, reload
- tabs: tab listing, opening, switching, closing
- content: markdown/text/HTML extraction
- downloads: download registry view
- vision: screenshots and VLM prediction parsing
"""

from .base import SmartToolError, ensure_allowed_navigation, get_active_page
from .content import get_html, get_markdown, get_text, html_to_markdown
from .downloads import get_download_list
from .navigation import go_back, go_forward, navigate_to, reload_page
from .tabs import close_tab, list_tabs, new_tab, switch_tab
from .vision import parse_vlm_prediction, take_screenshot

__all__ = [
    "SmartToolError",
    "close_tab",
    "ensure_allowed_navigation",
    "get_active_page",
    "get_download_list",
    "get_html",
    "get_markdown",
    "get_text",
    "go_back",
    "go_forward",
    "html_to_markdown",
    "list_tabs",
    "navigate_to",
    "new_tab",
    "parse_vlm_prediction",
    "reload_page",
    "switch_tab",
    "take_screenshot",
]
