"""Pipeline settings: constants as defaults, overlaid by a JSON file and the environment."""

import json
import logging
import os
from dataclasses import dataclass, fields

from podcast_journey.constants import (
    CACHE_MAX_ENTRIES,
    FALLBACK_DELAY,
    INTER_EPISODE_DELAY,
    MAX_CHUNK_LENGTH,
    MAX_SEGMENTS,
    OUTPUT_DIR,
    TTS_API_URL,
    TTS_BACKEND,
    TTS_CHUNK_DELAY,
    TTS_RETRY_BASE_DELAY,
    TTS_RETRY_COUNT,
    TTS_SEGMENT_DELAY,
    TTS_TIMEOUT,
    GEMINI_API_URL,
)

logger = logging.getLogger(__name__)

# Environment variable → Settings field
ENV_OVERRIDES = {
    "GOOGLE_TTS_API_KEY": "tts_api_key",
    "GEMINI_API_KEY": "gemini_api_key",
    "PODCAST_TTS_BACKEND": "tts_backend",
}


@dataclass
class Settings:
    tts_backend: str = TTS_BACKEND
    tts_api_key: str = ""
    tts_api_url: str = TTS_API_URL
    tts_timeout: float = TTS_TIMEOUT
    gemini_api_key: str = ""
    gemini_api_url: str = GEMINI_API_URL
    max_retries: int = TTS_RETRY_COUNT
    initial_delay: float = TTS_RETRY_BASE_DELAY
    max_chunk_length: int = MAX_CHUNK_LENGTH
    max_segments: int = MAX_SEGMENTS
    chunk_delay: float = TTS_CHUNK_DELAY
    segment_delay: float = TTS_SEGMENT_DELAY
    fallback_delay: float = FALLBACK_DELAY
    inter_episode_delay: float = INTER_EPISODE_DELAY
    cache_size: int = CACHE_MAX_ENTRIES
    output_dir: str = OUTPUT_DIR


def load_settings(path: str | None = None, environ: dict | None = None) -> Settings:
    """Build Settings from defaults, an optional JSON file, then the environment.

    A missing or malformed file is ignored with a warning, as are unknown keys.
    Values are coerced to the type of the field's default.
    """
    settings = Settings()
    known = {f.name: f for f in fields(Settings)}

    if path:
        data = {}
        if not os.path.exists(path):
            logger.warning("Settings file not found: %s, using defaults", path)
        else:
            try:
                with open(path) as f:
                    data = json.load(f)
            except json.JSONDecodeError:
                logger.warning("Malformed settings file: %s, using defaults", path)
        if not isinstance(data, dict):
            logger.warning("Settings file %s must contain a JSON object", path)
            data = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown setting: %s", key)
                continue
            _apply(settings, key, value)

    environ = os.environ if environ is None else environ
    for var, key in ENV_OVERRIDES.items():
        if environ.get(var):
            _apply(settings, key, environ[var])

    return settings


def _apply(settings: Settings, key: str, value) -> None:
    current = getattr(settings, key)
    try:
        setattr(settings, key, type(current)(value))
    except (TypeError, ValueError):
        logger.warning("Invalid value for setting %s: %r", key, value)
