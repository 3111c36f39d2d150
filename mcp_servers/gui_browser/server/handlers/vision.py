"""Screenshot and prediction parsing handlers."""

from __future__ import annotations

from typing import Any

from ... import tools
from ..types import ToolContext, ToolResult


def handle_screenshot(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    shot = tools.take_screenshot(
        ctx.session,
        name=args.get("name"),
        full_page=bool(args.get("full_page", False)),
        active=ctx.active,
    )
    text = f"Screenshot '{shot.name}' taken at {shot.width}x{shot.height} ({shot.uri})"
    return ToolResult.with_image(text, shot.data, data={"name": shot.name, "uri": shot.uri})


def handle_parse_prediction(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    result = tools.parse_vlm_prediction(
        args.get("prediction", ""),
        args.get("factor", 1000),
        screen_width=args.get("screen_width"),
        screen_height=args.get("screen_height"),
        scale_factor=args.get("scale_factor"),
    )
    return ToolResult.json(result)


VISION_HANDLERS: dict[str, tuple] = {
    "screenshot": (handle_screenshot, True),
    "parse_prediction": (handle_parse_prediction, False),
}
