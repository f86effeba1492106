"""Shared fixtures for podcast journey tests."""

import base64
from unittest.mock import MagicMock, patch

import pytest
from pydub import AudioSegment

from podcast_journey.models import Episode, Segment
from podcast_journey.settings import Settings


def echo_audio(text, voice, audio_config):
    """Fake synthesis: the base64 of the text itself."""
    return base64.b64encode(text.encode()).decode("ascii")


@pytest.fixture
def tiny_mp3(tmp_path):
    """Generate a 100ms silent MP3 for testing."""
    path = tmp_path / "test.mp3"
    silence = AudioSegment.silent(duration=100)
    silence.export(str(path), format="mp3")
    return path


@pytest.fixture
def mp3_payload(tiny_mp3):
    """Base64 of a real MP3 file."""
    return base64.b64encode(tiny_mp3.read_bytes()).decode("ascii")


@pytest.fixture
def fake_client():
    """TTS client mock that echoes the request text back as audio."""
    client = MagicMock()
    client.synthesize.side_effect = echo_audio
    return client


@pytest.fixture
def no_sleep():
    """Patch out every pipeline delay and record the requested durations."""
    with patch("podcast_journey.tts.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def quick_settings():
    """Default policy with no inter-chunk/episode waits."""
    return Settings(chunk_delay=0.0, fallback_delay=0.0, inter_episode_delay=0.0)


@pytest.fixture
def intro_script():
    return (
        "[Intro Music fades in and out]\n"
        "**Host:** Welcome to the show.\n"
        "**Speaker:** Thanks for having me."
    )


@pytest.fixture
def sample_segments():
    """Pre-built segments for synthesizer tests."""
    return [
        Segment(type="sound", text="[Intro Music]"),
        Segment(type="speech", text="Welcome.", speaker="Host"),
        Segment(type="speech", text="Glad to be here.", speaker="Speaker"),
    ]


@pytest.fixture
def sample_episode(intro_script):
    return Episode(title="Getting Started", description="The basics.", script=intro_script)
