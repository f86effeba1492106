"""Tests for parser module: script segmentation and chunk splitting."""

import re

from podcast_journey.parser import parse_script, split_into_chunks


def _squash(text):
    return re.sub(r"\s+", " ", text).strip()


# --- parse_script ---

def test_parse_intro_music_script(intro_script):
    """Sound marker then two speaker turns."""
    segments = parse_script(intro_script)
    assert [s.type for s in segments] == ["sound", "speech", "speech"]
    assert segments[0].text == "[Intro Music fades in and out]"
    assert segments[1].speaker == "Host"
    assert segments[1].text == "Welcome to the show."
    assert segments[2].speaker == "Speaker"
    assert segments[2].text == "Thanks for having me."


def test_parse_continuation_lines_join():
    """Lines without a marker continue the current turn."""
    script = "**Host:** First line.\nSecond line.\n\n   Third line.  "
    segments = parse_script(script)
    assert len(segments) == 1
    assert segments[0].text == "First line. Second line. Third line."


def test_parse_text_before_first_speaker():
    """Leading text is attributed to the empty speaker."""
    segments = parse_script("Cold open.\n**Host:** Hello.")
    assert segments[0].speaker == ""
    assert segments[0].text == "Cold open."
    assert segments[1].speaker == "Host"


def test_parse_sound_splits_turn():
    """A sound marker mid-turn flushes the buffer; the speaker carries on after."""
    script = "**Host:** Before.\n[Transition chime]\nAfter."
    segments = parse_script(script)
    assert [(s.type, s.text) for s in segments] == [
        ("speech", "Before."),
        ("sound", "[Transition chime]"),
        ("speech", "After."),
    ]
    assert segments[2].speaker == "Host"


def test_parse_speaker_name_trimmed():
    segments = parse_script("** Guest :** Hi.")
    assert segments[0].speaker == "Guest"


def test_parse_empty_turn_dropped():
    """A speaker marker with no text emits nothing."""
    segments = parse_script("**Host:**\n**Speaker:** Hi.")
    assert len(segments) == 1
    assert segments[0].speaker == "Speaker"


def test_parse_bracket_inside_text_is_speech():
    """Only a whole line in brackets is a sound marker."""
    segments = parse_script("**Host:** See [1] for details.")
    assert segments[0].type == "speech"


def test_parse_non_string_returns_empty():
    assert parse_script(None) == []
    assert parse_script({"0": "x"}) == []


def test_parse_reproduces_speech_content():
    """Re-joining speech text reproduces the spoken content, modulo whitespace."""
    turns = [("Host", "Welcome back.  Today:\nownership."), ("Speaker", "Thanks!\nLet's go.")]
    script = "[Intro]\n" + "\n".join(f"**{who}:** {text}" for who, text in turns) + "\n[Outro]"
    speech = [s for s in parse_script(script) if s.type == "speech"]
    assert [s.speaker for s in speech] == ["Host", "Speaker"]
    assert [_squash(s.text) for s in speech] == [_squash(t) for _, t in turns]


# --- split_into_chunks ---

def test_split_short_text_single_chunk():
    assert split_into_chunks("Hello there. How are you?") == ["Hello there. How are you?"]


def test_split_empty_text():
    assert split_into_chunks("") == []
    assert split_into_chunks("   ") == []


def test_split_respects_limit():
    """Chunks stay under the limit and rejoin to the input."""
    text = " ".join(f"Sentence number {i} is here." for i in range(200))
    chunks = split_into_chunks(text, max_length=100)
    assert len(chunks) > 1
    assert all(len(c) <= 100 for c in chunks)
    assert _squash(" ".join(chunks)) == _squash(text)


def test_split_at_sentence_boundaries():
    chunks = split_into_chunks("One two. Three four! Five six?", max_length=12)
    assert chunks == ["One two.", "Three four!", "Five six?"]


def test_split_oversized_sentence_kept_whole():
    """A single sentence longer than the limit is its own chunk, not cut."""
    long_sentence = "word " * 50 + "end."
    chunks = split_into_chunks(f"Short. {long_sentence} Tail.", max_length=40)
    assert chunks[0] == "Short."
    assert chunks[1] == long_sentence.strip()
    assert chunks[2] == "Tail."


def test_split_exact_fit():
    """The joining space counts toward the limit."""
    assert split_into_chunks("Aaaa. Bbbb.", max_length=11) == ["Aaaa. Bbbb."]
    assert split_into_chunks("Aaaa. Bbbb.", max_length=10) == ["Aaaa.", "Bbbb."]
