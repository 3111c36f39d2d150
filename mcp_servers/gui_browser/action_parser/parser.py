"""Turn raw VLM predictions into normalized ``ParsedAction`` lists."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .call import ActionParseError, parse_action_call
from .coordinates import Factor, axis_factors, format_box, is_box_key, normalize_box, screen_coords
from .text import parse_sections

logger = logging.getLogger("mcp.gui_browser.action_parser")

DEFAULT_FACTOR = 1000


@dataclass(frozen=True)
class ScreenContext:
    """Screenshot size in pixels; enables ``start_coords`` / ``end_coords``."""

    width: float
    height: float


@dataclass(frozen=True)
class ParsedAction:
    reflection: str
    thought: str
    action_type: str
    # Values are text, except start_coords/end_coords which are [x, y] pixel lists.
    action_inputs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "action_inputs", MappingProxyType(dict(self.action_inputs)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "reflection": self.reflection,
            "thought": self.thought,
            "action_type": self.action_type,
            "action_inputs": dict(self.action_inputs),
        }


class ActionParser:
    """Parse predictions with a fixed coordinate scale factor.

    ``factor`` is one number for both axes or a ``(width, height)`` pair. With a
    ``screen_context`` every box also yields pixel coordinates of its center,
    multiplied by ``scale_factor`` (device pixel ratio) when given.

    Partial-failure semantics: a call that cannot be parsed is logged and skipped,
    every other call in the same prediction is still returned.
    """

    def __init__(
        self,
        factor: Factor = DEFAULT_FACTOR,
        mode: str | None = None,
        screen_context: ScreenContext | None = None,
        scale_factor: float | None = None,
    ) -> None:
        self.factor = axis_factors(factor)
        self.mode = mode
        self.screen_context = screen_context
        self.scale_factor = scale_factor

    def parse(self, prediction: str, factor: Factor | None = None) -> list[ParsedAction]:
        scale = self.factor if factor is None else axis_factors(factor)
        sections = parse_sections(prediction, self.mode)

        actions: list[ParsedAction] = []
        for raw in sections.action_strings():
            # Newlines inside one call stay literal (two characters) for the call grammar.
            candidate = raw.replace("\n", "\\n").lstrip()
            try:
                call = parse_action_call(candidate)
            except ActionParseError as exc:
                logger.warning("action_parse_failed action=%r reason=%s", raw, exc)
                continue

            actions.append(
                ParsedAction(
                    reflection=sections.reflection,
                    thought=sections.thought,
                    action_type=call.function,
                    action_inputs=self._action_inputs(call.args, scale),
                )
            )
        return actions

    def _action_inputs(self, args: Mapping[str, str], factor: tuple[float, float]) -> dict[str, Any]:
        inputs: dict[str, Any] = {}
        screen = self.screen_context
        for name, value in args.items():
            if not value:
                continue
            key = name.strip()
            trimmed = value.strip()
            if not is_box_key(key):
                inputs[key] = trimmed
                continue
            box = normalize_box(trimmed, factor)
            inputs[key] = format_box(box)
            if screen is not None and screen.width and screen.height:
                coords_key = "start_coords" if "start_box" in key else "end_coords"
                inputs[coords_key] = screen_coords(
                    box, factor, screen.width, screen.height, self.scale_factor
                )
        return inputs


def parse_prediction(
    prediction: str,
    factor: Factor = DEFAULT_FACTOR,
    *,
    screen_context: ScreenContext | None = None,
    scale_factor: float | None = None,
) -> list[ParsedAction]:
    """Parse one VLM turn, e.g. ``"Thought: ...\\nAction: click(start_box='(948,57)')"``."""
    return ActionParser(factor, screen_context=screen_context, scale_factor=scale_factor).parse(
        prediction
    )


__all__ = ["DEFAULT_FACTOR", "ActionParser", "ParsedAction", "ScreenContext", "parse_prediction"]
