"""Tool schema definitions."""

from __future__ import annotations

from typing import Any

_NO_ARGS: dict[str, Any] = {"type": "object", "properties": {}}


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


NAVIGATION_TOOLS: list[dict[str, Any]] = [
    {
        "name": "navigate",
        "description": "Navigate the current tab to a URL. A load timeout is reported but not treated as an error.",
        "inputSchema": _schema(
            {
                "url": {"type": "string", "description": "Absolute URL (http, https, about, data, file)"},
                "wait_load": {"type": "boolean", "default": True, "description": "Wait for the load event"},
            },
            ["url"],
        ),
    },
    {"name": "back", "description": "Go back to the previous page", "inputSchema": _NO_ARGS},
    {"name": "forward", "description": "Go forward to the next page", "inputSchema": _NO_ARGS},
    {
        "name": "refresh",
        "description": "Reload the current page",
        "inputSchema": _schema({"ignore_cache": {"type": "boolean", "default": False}}),
    },
]

TAB_TOOLS: list[dict[str, Any]] = [
    {
        "name": "new_tab",
        "description": "Open a new tab with a URL and make it current",
        "inputSchema": _schema({"url": {"type": "string", "description": "URL to open in the new tab"}}, ["url"]),
    },
    {
        "name": "close_tab",
        "description": "Close a tab by index; without an index the current tab is closed",
        "inputSchema": _schema({"index": {"type": "integer", "description": "Tab index (see tab_list)"}}),
    },
    {
        "name": "switch_tab",
        "description": "Switch to a tab by index",
        "inputSchema": _schema({"index": {"type": "integer", "description": "Tab index to switch to"}}, ["index"]),
    },
    {
        "name": "tab_list",
        "description": "List open tabs. Indices are positions at call time and shift when tabs close.",
        "inputSchema": _NO_ARGS,
    },
]

CONTENT_TOOLS: list[dict[str, Any]] = [
    {"name": "get_markdown", "description": "Get the page content as Markdown", "inputSchema": _NO_ARGS},
    {"name": "get_text", "description": "Get the visible text of the page", "inputSchema": _NO_ARGS},
    {"name": "get_html", "description": "Get the HTML of the page", "inputSchema": _NO_ARGS},
]

DOWNLOAD_TOOLS: list[dict[str, Any]] = [
    {
        "name": "get_download_list",
        "description": "List downloads started in this session with their state and progress",
        "inputSchema": _NO_ARGS,
    },
]

VISION_TOOLS: list[dict[str, Any]] = [
    {
        "name": "screenshot",
        "description": "Screenshot the current tab; the image is also kept as resource screenshot://<name>",
        "inputSchema": _schema(
            {
                "name": {"type": "string", "description": "Resource name (default screenshot-<n>)"},
                "full_page": {"type": "boolean", "default": False},
            }
        ),
    },
    {
        "name": "parse_prediction",
        "description": """Parse a VLM prediction into normalized actions.
Box arguments (start_box, end_box) are divided by `factor` and returned as "[x1,y1,x2,y2]".
`factor` is one number or a [width, height] pair. With screen_width and screen_height each box
also yields start_coords / end_coords: the box center in pixels, times scale_factor.
Accepted box forms: (x,y), (x1,y1,x2,y2), <bbox>x1 y1 x2 y2</bbox>, <point>x y</point>,
<|box_start|>(x,y)<|box_end|>; point= is read as start_box=.

EXAMPLE:
parse_prediction(prediction="Thought: open menu\\nAction: click(start_box='(948,57)')")
-> [{"action_type": "click", "action_inputs": {"start_box": "[0.948,0.057,0.948,0.057]"}, ...}]""",
        "inputSchema": _schema(
            {
                "prediction": {"type": "string", "description": "Raw model output"},
                "factor": {
                    "oneOf": [
                        {"type": "number"},
                        {"type": "array", "items": {"type": "number"}, "minItems": 2, "maxItems": 2},
                    ],
                    "default": 1000,
                    "description": "Coordinate scale factor, or [width, height] factors",
                },
                "screen_width": {"type": "number", "description": "Screenshot width in pixels"},
                "screen_height": {"type": "number", "description": "Screenshot height in pixels"},
                "scale_factor": {"type": "number", "description": "Device pixel ratio for *_coords"},
            },
            ["prediction"],
        ),
    },
]

SESSION_TOOLS: list[dict[str, Any]] = [
    {
        "name": "close_all_pages",
        "description": "Close every tab except one, which is left on about:blank",
        "inputSchema": _NO_ARGS,
    },
    {"name": "close_browser", "description": "Close the browser", "inputSchema": _NO_ARGS},
]

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    *NAVIGATION_TOOLS,
    *TAB_TOOLS,
    *CONTENT_TOOLS,
    *DOWNLOAD_TOOLS,
    *VISION_TOOLS,
    *SESSION_TOOLS,
]
