from __future__ import annotations

import logging

import pytest

from mcp_servers.gui_browser.action_parser import ActionParser, ParsedAction, ScreenContext, parse_prediction


def test_action_summary_example_end_to_end() -> None:
    actions = parse_prediction("Action_Summary: 左键单击...\nAction: click(start_box='(948,57)')", 1000)

    assert [a.to_dict() for a in actions] == [
        {
            "reflection": "",
            "thought": "左键单击...",
            "action_type": "click",
            "action_inputs": {"start_box": "[0.948,0.057,0.948,0.057]"},
        }
    ]


def test_thought_click_point_becomes_degenerate_box() -> None:
    actions = parse_prediction("Thought: open the settings menu\nAction: click(start_box='(100,250)')", 1000)

    assert len(actions) == 1
    assert actions[0].action_type == "click"
    assert actions[0].thought == "open the settings menu"
    assert actions[0].action_inputs["start_box"] == "[0.1,0.25,0.1,0.25]"


def test_reflection_yields_reflection_and_summary_as_thought() -> None:
    text = "Reflection: the page did not load\nAction_Summary: retry the click\nAction: click(start_box='(1,2)')"
    (action,) = parse_prediction(text, 1000)

    assert action.reflection == "the page did not load"
    assert action.thought == "retry the click"
    assert action.action_inputs["start_box"] == "[0.001,0.002,0.001,0.002]"


def test_multiple_actions_skip_invalid_calls(caplog) -> None:  # noqa: ANN001
    text = (
        "Thought: fill the form\n"
        "Action: click(start_box='(100,200)')\n\n"
        "this is not a call\n\n"
        "type(content='hello')"
    )
    with caplog.at_level(logging.WARNING, logger="mcp.gui_browser.action_parser"):
        actions = parse_prediction(text, 1000)

    assert [a.action_type for a in actions] == ["click", "type"]
    assert actions[1].action_inputs == {"content": "hello"}
    assert all(a.thought == "fill the form" for a in actions)
    assert "action_parse_failed" in caplog.text


def test_drag_with_four_tuple_and_point() -> None:
    text = "Thought: move it\nAction: drag(start_box='(100,200,300,400)', end_box='(500,600)')"
    (action,) = parse_prediction(text, 1000)

    assert action.action_inputs == {
        "start_box": "[0.1,0.2,0.3,0.4]",
        "end_box": "[0.5,0.6,0.5,0.6]",
    }


def test_malformed_coordinate_is_kept_as_null() -> None:
    (action,) = parse_prediction("Thought: t\nAction: click(start_box='(abc,57)')", 1000)

    assert action.action_inputs["start_box"] == "[null,0.057,null,0.057]"


def test_newline_inside_call_is_escaped() -> None:
    (action,) = parse_prediction("Thought: t\nAction: type(content='line one\nline two')", 1000)

    assert action.action_inputs["content"] == "line one\\nline two"


def test_missing_action_marker_uses_whole_text() -> None:
    (action,) = parse_prediction("hotkey(key='ctrl c')", 1000)

    assert action.action_type == "hotkey"
    assert action.action_inputs == {"key": "ctrl c"}
    assert action.thought == ""


def test_empty_argument_values_are_skipped() -> None:
    (action,) = parse_prediction("Thought: t\nAction: finished(content='')", 1000)

    assert action.action_type == "finished"
    assert dict(action.action_inputs) == {}


def test_o1_format() -> None:
    text = (
        "<Thought>the button is top right</Thought>\n"
        "Action_Summary: click the button\n"
        "Action: click(start_box='(10,20)')\n"
        "</Output>"
    )
    (action,) = parse_prediction(text, 1000)

    assert action.thought == "the button is top right\n<Action_Summary>\nclick the button"
    assert action.reflection == ""
    assert action.action_inputs["start_box"] == "[0.01,0.02,0.01,0.02]"


def test_o1_missing_sections_render_as_null() -> None:
    (action,) = parse_prediction("<Thought>look around</Thought>\nAction: wait()\n</Output>", 1000)

    assert action.thought == "look around\n<Action_Summary>\nnull"
    assert action.action_type == "wait"

    parser = ActionParser(factor=1000, mode="o1")
    (action,) = parser.parse("note\nAction_Summary: click it\nAction: wait()\n</Output>")

    assert action.thought == "null\n<Action_Summary>\nclick it"


def test_extracted_prose_is_not_rewritten() -> None:
    thought = "Click (12,34) on the 'Save' button, then wait"
    (action,) = parse_prediction(f"Thought: {thought}\nAction: wait()", 1000)

    assert action.thought == thought
    assert action.action_type == "wait"


def test_parser_factor_can_be_overridden_per_call() -> None:
    parser = ActionParser(factor=1000)

    (action,) = parser.parse("Thought: t\nAction: click(start_box='(50,50)')", factor=100)

    assert action.action_inputs["start_box"] == "[0.5,0.5,0.5,0.5]"


def test_parsed_action_is_immutable() -> None:
    action = ParsedAction(reflection="", thought="t", action_type="click", action_inputs={"a": "b"})

    with pytest.raises(TypeError):
        action.action_inputs["a"] = "c"  # type: ignore[index]
    with pytest.raises(AttributeError):
        action.thought = "other"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("call", "expected"),
    [
        ("click(start_box='<bbox>637 964 637 964</bbox>')", "[0.637,0.964,0.637,0.964]"),
        ("click(point='<point>510 150</point>')", "[0.51,0.15,0.51,0.15]"),
        ("click(start_box='<|box_start|>(510,150)<|box_end|>')", "[0.51,0.15,0.51,0.15]"),
    ],
)
def test_tagged_box_formats(call: str, expected: str) -> None:
    (action,) = parse_prediction(f"Thought: t\nAction: {call}", 1000)

    assert action.action_type == "click"
    assert dict(action.action_inputs) == {"start_box": expected}


def test_per_axis_factor() -> None:
    (action,) = parse_prediction("Thought: t\nAction: click(start_box='(960,540)')", (1920, 1080))

    assert action.action_inputs["start_box"] == "[0.5,0.5,0.5,0.5]"


def test_screen_context_adds_pixel_coordinates() -> None:
    text = "Thought: t\nAction: drag(start_box='(500,250)', end_box='(100,100,300,300)')"

    (action,) = parse_prediction(text, 1000, screen_context=ScreenContext(width=1280, height=800))

    assert action.action_inputs["start_box"] == "[0.5,0.25,0.5,0.25]"
    assert action.action_inputs["start_coords"] == [640.0, 200.0]
    assert action.action_inputs["end_coords"] == [256.0, 160.0]


def test_screen_coordinates_follow_scale_factor() -> None:
    parser = ActionParser(factor=1000, screen_context=ScreenContext(width=1280, height=800), scale_factor=2)

    (action,) = parser.parse("Thought: t\nAction: click(start_box='(500,250)')")

    assert action.action_inputs["start_coords"] == [1280.0, 400.0]


def test_no_pixel_coordinates_without_screen_size() -> None:
    (action,) = parse_prediction("Thought: t\nAction: click(start_box='(500,250)')", 1000)
    assert "start_coords" not in action.action_inputs

    (action,) = parse_prediction(
        "Thought: t\nAction: click(start_box='(500,250)')", 1000, screen_context=ScreenContext(0, 800)
    )
    assert "start_coords" not in action.action_inputs
