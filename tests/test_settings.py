"""Tests for settings loading."""

import json

from podcast_journey.constants import INTER_EPISODE_DELAY, TTS_RETRY_COUNT
from podcast_journey.settings import Settings, load_settings


def test_defaults_without_file():
    settings = load_settings(environ={})
    assert settings == Settings()
    assert settings.max_retries == TTS_RETRY_COUNT
    assert settings.inter_episode_delay == INTER_EPISODE_DELAY


def test_file_overrides(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"max_retries": 5, "chunk_delay": 0, "tts_backend": "edge"}))
    settings = load_settings(str(path), environ={})
    assert settings.max_retries == 5
    assert settings.chunk_delay == 0.0
    assert isinstance(settings.chunk_delay, float)
    assert settings.tts_backend == "edge"


def test_unknown_keys_ignored(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"bogus": 1, "max_segments": 10}))
    settings = load_settings(str(path), environ={})
    assert settings.max_segments == 10
    assert "bogus" in caplog.text


def test_malformed_file_uses_defaults(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert load_settings(str(path), environ={}) == Settings()
    assert "Malformed" in caplog.text


def test_missing_file_uses_defaults(tmp_path):
    assert load_settings(str(tmp_path / "nope.json"), environ={}) == Settings()


def test_invalid_value_keeps_default(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"max_retries": "lots"}))
    assert load_settings(str(path), environ={}).max_retries == TTS_RETRY_COUNT


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"tts_backend": "google"}))
    settings = load_settings(
        str(path),
        environ={"GOOGLE_TTS_API_KEY": "k1", "GEMINI_API_KEY": "k2", "PODCAST_TTS_BACKEND": "edge"},
    )
    assert settings.tts_api_key == "k1"
    assert settings.gemini_api_key == "k2"
    assert settings.tts_backend == "edge"
