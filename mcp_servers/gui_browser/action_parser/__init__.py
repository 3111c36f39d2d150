"""Parse VLM action predictions into the typed, coordinate-normalized action protocol."""

from .call import ActionCall, ActionParseError, parse_action_call
from .coordinates import format_box, normalize_box, normalize_box_text
from .parser import DEFAULT_FACTOR, ActionParser, ParsedAction, ScreenContext, parse_prediction
from .text import MODE_BC, MODE_O1, PredictionSections, detect_mode, parse_sections

__all__ = [
    "DEFAULT_FACTOR",
    "MODE_BC",
    "MODE_O1",
    "ActionCall",
    "ActionParseError",
    "ActionParser",
    "ParsedAction",
    "PredictionSections",
    "ScreenContext",
    "detect_mode",
    "format_box",
    "normalize_box",
    "normalize_box_text",
    "parse_action_call",
    "parse_prediction",
    "parse_sections",
]
