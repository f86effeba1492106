"""Tests for script shape classification and normalization."""

import pytest

from podcast_journey.errors import ScriptShapeError
from podcast_journey.normalize import (
    SCRIPT_MISSING,
    SCRIPT_OBJECT,
    SCRIPT_TEXT,
    SCRIPT_TURNS,
    classify_script,
    normalize_script,
)
from podcast_journey.parser import parse_script


@pytest.mark.parametrize("script", [None, "", "   \n", [], {}])
def test_classify_missing(script):
    assert classify_script(script) == SCRIPT_MISSING


def test_classify_shapes():
    assert classify_script("**Host:** Hi.") == SCRIPT_TEXT
    assert classify_script([{"speaker": "Host", "text": "Hi."}]) == SCRIPT_TURNS
    assert classify_script({"intro": "Hi."}) == SCRIPT_OBJECT
    assert classify_script(42) == SCRIPT_OBJECT


def test_normalize_missing_raises():
    with pytest.raises(ScriptShapeError, match="Missing script content"):
        normalize_script(None)


def test_normalize_text_unchanged(intro_script):
    assert normalize_script(intro_script) == intro_script


def test_normalize_turns():
    """Turn records become speaker lines; sound effects become markers."""
    script = [
        {"soundEffect": "Intro Music"},
        {"speaker": "Host", "text": "Welcome."},
        {"speaker": "Speaker", "line": "Thanks."},
        "**Host:** Bye.",
    ]
    result = normalize_script(script)
    assert result == "[Intro Music]\n\n**Host:** Welcome.\n\n**Speaker:** Thanks.\n\n**Host:** Bye."
    segments = parse_script(result)
    assert [s.type for s in segments] == ["sound", "speech", "speech", "speech"]


def test_normalize_turns_unknown_item_stringified():
    assert normalize_script([{"foo": 1}]) == "{'foo': 1}"


def test_normalize_numeric_keys_in_order():
    script = {
        "1": {"speaker": "Speaker", "line": "Second."},
        "0": {"speaker": "Host", "line": "First."},
        "10": {"speaker": "Host", "text": "Last."},
    }
    assert normalize_script(script) == "**Host:** First.\n\n**Speaker:** Second.\n\n**Host:** Last."


def test_normalize_dialogue_list():
    script = {"dialogue": [{"speaker": "Host", "text": "Hi."}, {"note": "skip me"}]}
    assert normalize_script(script) == "**Host:** Hi."


def test_normalize_string_properties():
    script = {"Host": "Hello.", "Speaker": "Hi.", "count": 3}
    assert normalize_script(script) == "**Host:** Hello.\n\n**Speaker:** Hi."


def test_normalize_last_resort_embeds_json():
    """An object with nothing recognizable is wrapped in a synthetic intro and outro."""
    result = normalize_script({"sections": [1, 2]}, title="Rust")
    assert result.startswith("[Intro Music]\n\n**Host:** Welcome to our podcast about Rust.")
    assert '"sections"' in result
    assert result.endswith("**Host:** Thanks for listening!")
