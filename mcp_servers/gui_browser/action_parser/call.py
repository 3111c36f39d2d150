"""Parser for a single action call: ``name(key='value', ...)``.

Arguments are split by a small scanner instead of one regex so quoting rules can be
tested on their own:
- commas inside a quoted segment ('...' or "...") never split;
- a backslash inside a quoted segment escapes the next character;
- commas inside (), [] and {} never split, so ``start_box=(1,2)`` stays whole;
- an unterminated quote ends the current argument and is dropped.

Before matching, ``<|box_start|>`` and ``<|box_end|>`` markers are removed and ``point=``
is rewritten to ``start_box=``. Values written as ``<bbox>x1 y1 x2 y2</bbox>`` or
``<point>x y</point>`` become the tuple form ``(x1,y1,x2,y2)``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_CALL_RE = re.compile(r"^(\w+)\((.*)\)$", re.ASCII)
_QUOTES = "'\""
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = set(_OPENERS.values())
_BOX_MARKERS_RE = re.compile(r"<\|box_start\|>|<\|box_end\|>")
_WHITESPACE_RE = re.compile(r"\s+")
_COORDINATE_TAGS = (("<bbox>", "</bbox>"), ("<point>", "</point>"))


class ActionParseError(ValueError):
    """Raised when one action call does not follow the call grammar."""


@dataclass(frozen=True)
class ActionCall:
    function: str
    args: dict[str, str] = field(default_factory=dict)


def split_arguments(args: str) -> list[str]:
    """Split an argument list on top-level commas."""
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    i = 0
    n = len(args)

    def flush() -> None:
        if buf:
            parts.append("".join(buf))
            buf.clear()

    while i < n:
        ch = args[i]
        if ch in _QUOTES:
            end = _find_closing_quote(args, i)
            if end < 0:
                # Unterminated quote: drop it and start a new argument after it.
                flush()
                i += 1
                continue
            buf.append(args[i : end + 1])
            i = end + 1
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and depth > 0:
            depth -= 1
        elif ch == "," and depth == 0:
            flush()
            i += 1
            continue
        buf.append(ch)
        i += 1

    flush()
    return parts


def _find_closing_quote(text: str, start: int) -> int:
    quote = text[start]
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return -1


def strip_quotes(value: str) -> str:
    """Remove one leading and one trailing quote character, independently."""
    if value[:1] in _QUOTES:
        value = value[1:]
    if value[-1:] in _QUOTES:
        value = value[:-1]
    return value


def expand_coordinate_tags(value: str) -> str:
    """``<bbox>637 964 637 964</bbox>`` -> ``(637,964,637,964)``; other values unchanged."""
    for open_tag, close_tag in _COORDINATE_TAGS:
        if open_tag in value:
            inner = value.replace(open_tag, "").replace(close_tag, "")
            value = "(" + _WHITESPACE_RE.sub(",", inner) + ")"
    return value


def parse_keyword(pair: str) -> tuple[str, str] | None:
    key, _, value = pair.partition("=")
    if not key:
        return None
    return key.strip(), expand_coordinate_tags(strip_quotes(value.strip()))


def parse_action_call(action: str) -> ActionCall:
    """Parse ``click(start_box='(279,81)')`` into name + keyword arguments."""
    action = _BOX_MARKERS_RE.sub("", action).replace("point=", "start_box=")
    m = _CALL_RE.match(action.strip())
    if not m:
        raise ActionParseError("Not a function call")

    function, args_text = m.group(1), m.group(2)
    kwargs: dict[str, str] = {}
    if args_text.strip():
        for pair in split_arguments(args_text):
            parsed = parse_keyword(pair)
            if parsed is None:
                continue
            key, value = parsed
            kwargs[key] = value
    return ActionCall(function=function, args=kwargs)


__all__ = [
    "ActionCall",
    "ActionParseError",
    "expand_coordinate_tags",
    "parse_action_call",
    "parse_keyword",
    "split_arguments",
    "strip_quotes",
]
