"""Split a VLM prediction into reflection, thought and action section.

Two output formats are understood:

- ``bc``: plain markers. The text starts with ``Thought:``, ``Reflection:`` (followed
  by ``Action_Summary:``) or ``Action_Summary:``; actions follow the last ``Action:``.
- ``o1``: tagged output, ``<Thought>...</Thought>`` then ``Action_Summary:`` and
  ``Action:`` lines, closed by ``</Output>``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

MODE_BC = "bc"
MODE_O1 = "o1"

ACTION_MARKER = "Action:"

_THOUGHT_RE = re.compile(r"Thought: (.+?)(?=\s*Action:|\Z)", re.DOTALL)
_REFLECTION_RE = re.compile(r"Reflection: (.+?)Action_Summary: (.+?)(?=\s*Action:|\Z)", re.DOTALL)
_SUMMARY_RE = re.compile(r"Action_Summary: (.+?)(?=\s*Action:|\Z)")

_O1_THOUGHT_RE = re.compile(r"<Thought>\s*(.*?)\s*</Thought>")
_O1_SUMMARY_RE = re.compile(r"\nAction_Summary:\s*(.*?)\s*Action:")
_O1_ACTION_RE = re.compile(r"\nAction:\s*(.*?)\s*</Output>")


@dataclass(frozen=True)
class PredictionSections:
    mode: str
    thought: str
    reflection: str
    action_text: str

    def action_strings(self) -> list[str]:
        """Individual action calls, one per blank-line separated block."""
        return self.action_text.split("\n\n")


def detect_mode(text: str) -> str:
    if "<Thought>" in text and "</Output>" in text:
        return MODE_O1
    return MODE_BC


def parse_sections(text: str, mode: str | None = None) -> PredictionSections:
    text = (text or "").strip()
    mode = mode or detect_mode(text)
    if mode == MODE_O1:
        return _parse_o1(text)
    if mode != MODE_BC:
        raise ValueError(f"Unknown prediction format: {mode}")
    return _parse_bc(text)


def _parse_bc(text: str) -> PredictionSections:
    thought = ""
    reflection = ""

    if text.startswith("Thought:"):
        m = _THOUGHT_RE.search(text)
        if m:
            thought = m.group(1).strip()
    elif text.startswith("Reflection:"):
        m = _REFLECTION_RE.search(text)
        if m:
            reflection = m.group(1).strip()
            thought = m.group(2).strip()
    elif text.startswith("Action_Summary:"):
        m = _SUMMARY_RE.search(text)
        if m:
            thought = m.group(1).strip()

    if ACTION_MARKER in text:
        action_text = text.split(ACTION_MARKER)[-1]
    else:
        # No marker: treat everything as the action section.
        action_text = text

    return PredictionSections(mode=MODE_BC, thought=thought, reflection=reflection, action_text=action_text)


def _parse_o1(text: str) -> PredictionSections:
    thought_m = _O1_THOUGHT_RE.search(text)
    summary_m = _O1_SUMMARY_RE.search(text)
    action_m = _O1_ACTION_RE.search(text)

    # A missing section renders as the literal "null" inside the combined thought.
    thought = thought_m.group(1) if thought_m else "null"
    summary = summary_m.group(1) if summary_m else "null"
    return PredictionSections(
        mode=MODE_O1,
        thought=f"{thought}\n<Action_Summary>\n{summary}",
        reflection="",
        action_text=action_m.group(1) if action_m else "",
    )


__all__ = [
    "ACTION_MARKER",
    "MODE_BC",
    "MODE_O1",
    "PredictionSections",
    "detect_mode",
    "parse_sections",
]
