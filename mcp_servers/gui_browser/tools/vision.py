"""Screenshots and VLM prediction parsing."""

from __future__ import annotations

from typing import Any

from ..action_parser import DEFAULT_FACTOR, ScreenContext, parse_prediction
from ..action_parser.coordinates import axis_factors
from ..page_selector import ActivePage
from ..screenshots import StoredScreenshot
from ..session_manager import BrowserSessionManager
from .base import SmartToolError, get_active_page


def take_screenshot(
    session: BrowserSessionManager,
    name: str | None = None,
    full_page: bool = False,
    *,
    active: ActivePage | None = None,
) -> StoredScreenshot:
    """Capture the active page and keep it as ``screenshot://<name>``."""
    current = get_active_page(session, active)
    try:
        data = current.page.screenshot(full_page=full_page)
    except Exception as e:
        raise SmartToolError(
            tool="screenshot",
            action="capture",
            reason=str(e),
            suggestion="Ensure the page is visible and responsive",
        ) from e
    if not data:
        raise SmartToolError(
            tool="screenshot",
            action="capture",
            reason="browser returned no image data",
            suggestion="Retry after the page has rendered",
        )
    return session.screenshots.put(data, name)


def _invalid_prediction_args(reason: str) -> SmartToolError:
    return SmartToolError(
        tool="parse_prediction",
        action="parse",
        reason=reason,
        suggestion="Pass factor as a number (1000) or a [width, height] pair, sizes as numbers",
    )


def parse_vlm_prediction(
    prediction: str,
    factor: Any = DEFAULT_FACTOR,
    screen_width: Any = None,
    screen_height: Any = None,
    scale_factor: Any = None,
) -> dict[str, Any]:
    try:
        scale = axis_factors(factor)
    except (TypeError, ValueError) as e:
        raise _invalid_prediction_args(
            f"factor must be a number or a [width, height] pair, got {factor!r}"
        ) from e

    screen: ScreenContext | None = None
    dpr: float | None = None
    try:
        if screen_width is not None and screen_height is not None:
            screen = ScreenContext(width=float(screen_width), height=float(screen_height))
        if scale_factor is not None:
            dpr = float(scale_factor)
    except (TypeError, ValueError) as e:
        raise _invalid_prediction_args(f"screen size and scale_factor must be numbers: {e}") from e

    actions = parse_prediction(prediction or "", scale, screen_context=screen, scale_factor=dpr)
    return {"actions": [action.to_dict() for action in actions], "count": len(actions)}

