"""Box coordinate normalization.

VLM predictions carry pixel-scale points ``(x,y)`` or rectangles ``(x1,y1,x2,y2)``.
Downstream consumers expect fractional boxes serialized as compact JSON array text,
e.g. ``"[0.948,0.057,0.948,0.057]"``. A point is widened into a degenerate box.

Malformed numbers are NOT rejected: they become NaN and are serialized as ``null``
(the JSON form of a non-finite number), so consumers decide how to handle them.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal

BOX_KEYS = ("start_box", "end_box")

_BRACKETS_RE = re.compile(r"[()\[\]]")
# Longest numeric prefix, like a lenient float reader.
_FLOAT_PREFIX_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity)")

Factor = float | tuple[float, float]


def is_box_key(key: str) -> bool:
    return any(marker in key for marker in BOX_KEYS)


def axis_factors(factor: Factor | list[float]) -> tuple[float, float]:
    """A single factor applies to both axes; a pair is ``(width, height)``."""
    if isinstance(factor, (tuple, list)):
        if len(factor) != 2:
            raise ValueError("factor must be a number or a [width, height] pair")
        return float(factor[0]), float(factor[1])
    return float(factor), float(factor)


def parse_lenient_float(raw: str) -> float:
    """Read the leading number of ``raw``; NaN when there is none."""
    m = _FLOAT_PREFIX_RE.match(raw or "")
    if not m:
        return math.nan
    token = m.group(1)
    if token.endswith("Infinity"):
        return -math.inf if token.startswith("-") else math.inf
    return float(token)


def normalize_box(raw: str, factor: Factor) -> list[float]:
    """Scale a textual point/box by ``factor``.

    Even positions are x values and use the width factor, odd positions use the
    height factor. Empty parts (``(1,,2)``) are dropped. Exactly two numbers are
    duplicated into ``[x, y, x, y]``; any other count is kept as-is (no validation).
    """
    factors = axis_factors(factor)
    parts = [part for part in _BRACKETS_RE.sub("", raw).split(",") if part != ""]
    values = [
        _divide(parse_lenient_float(part), factors[idx % 2]) for idx, part in enumerate(parts)
    ]
    if len(values) == 2:
        values.extend(values[:2])
    return values


def screen_coords(
    box: list[float],
    factor: Factor,
    width: float,
    height: float,
    scale_factor: float | None = None,
) -> list[float | None]:
    """Center of a normalized box in screen pixels, ``[x, y]``.

    Missing x2/y2 fall back to x1/y1. Fewer than two values give ``[]``. Non-finite
    results are returned as None.
    """
    if len(box) < 2:
        return []
    x1, y1 = box[0], box[1]
    x2 = box[2] if len(box) > 2 else x1
    y2 = box[3] if len(box) > 3 else y1
    width_factor, height_factor = axis_factors(factor)
    scale = 1.0 if scale_factor is None else scale_factor
    x = _divide(_round_half_up((x1 + x2) / 2 * width * width_factor), width_factor) * scale
    y = _divide(_round_half_up((y1 + y2) / 2 * height * height_factor), height_factor) * scale
    return [v if math.isfinite(v) else None for v in (x, y)]


def _round_half_up(value: float) -> float:
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def _divide(value: float, factor: float) -> float:
    try:
        return value / factor
    except ZeroDivisionError:
        if math.isnan(value) or value == 0:
            return math.nan
        return math.copysign(math.inf, value)


def format_number(value: float) -> str:
    """Render a float the way JSON encoders of the action protocol do.

    Integral values lose the trailing ``.0``, non-finite values become ``null`` and
    the positional/exponent switch happens at 1e-7 and 1e21.
    """
    if not math.isfinite(value):
        return "null"
    if value == 0:
        return "0"
    text = repr(float(value))
    if "e" in text:
        mantissa, _, exp_text = text.partition("e")
        exp = int(exp_text)
        if -7 < exp < 21:
            text = format(Decimal(text), "f")
        else:
            return f"{mantissa}e{'+' if exp > 0 else '-'}{abs(exp)}"
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_box(values: list[float]) -> str:
    return "[" + ",".join(format_number(v) for v in values) + "]"


def normalize_box_text(raw: str, factor: Factor) -> str:
    return format_box(normalize_box(raw, factor))


__all__ = [
    "BOX_KEYS",
    "Factor",
    "axis_factors",
    "format_box",
    "format_number",
    "is_box_key",
    "normalize_box",
    "normalize_box_text",
    "parse_lenient_float",
    "screen_coords",
]
