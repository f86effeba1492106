"""Voice profiles per speaker role, plus optional per-project overrides."""

import json
import logging
import os

from podcast_journey.models import AudioConfig, VoiceProfile

logger = logging.getLogger(__name__)

DEFAULT_SPEAKER = "Host"

# Speaker role → voice. Unknown roles fall back to DEFAULT_SPEAKER.
VOICE_PROFILES = {
    "Host": VoiceProfile(
        name="en-US-Chirp3-HD-Achird",
        edge_name="en-US-GuyNeural",
    ),
    "Speaker": VoiceProfile(
        name="en-US-Chirp3-HD-Kore",
        edge_name="en-US-AriaNeural",
    ),
    "Guest": VoiceProfile(
        name="en-US-Neural2-C",
        ssml_gender="FEMALE",
        edge_name="en-US-JennyNeural",
    ),
}

# Voice for the short placeholder announcement when full synthesis is throttled
FALLBACK_VOICE = VoiceProfile(
    name="en-US-Neural2-D",
    ssml_gender="MALE",
    edge_name="en-US-RogerNeural",
)

DEFAULT_AUDIO_CONFIG = AudioConfig(audio_encoding="MP3", speaking_rate=1.0, pitch=0.0)


def resolve_voice(speaker: str, profiles: dict[str, VoiceProfile] | None = None) -> VoiceProfile:
    """Pick the voice for a speaker label.

    Exact match first, then case-insensitive; empty or unknown speakers get
    the DEFAULT_SPEAKER voice.
    """
    if profiles is None:
        profiles = VOICE_PROFILES

    if speaker in profiles:
        return profiles[speaker]

    wanted = (speaker or "").strip().lower()
    for role, profile in profiles.items():
        if role.lower() == wanted:
            return profile

    if speaker:
        logger.debug("No voice for speaker %r — using %s voice", speaker, DEFAULT_SPEAKER)
    return profiles.get(DEFAULT_SPEAKER, VOICE_PROFILES[DEFAULT_SPEAKER])


def load_voice_overrides(path: str) -> dict[str, VoiceProfile]:
    """Load a voices JSON file and merge it over VOICE_PROFILES.

    File shape: {"Host": {"name": ..., "languageCode": ..., "ssmlGender": ...,
    "edgeName": ...}, ...}. Missing fields keep the built-in value. Returns the
    built-in table if the file is missing or malformed.
    """
    profiles = dict(VOICE_PROFILES)
    if not os.path.exists(path):
        return profiles
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.warning("Malformed voices file: %s — using built-in voices", path)
        return profiles
    if not isinstance(data, dict):
        logger.warning("Voices file %s must contain a JSON object", path)
        return profiles

    for role, info in data.items():
        if not isinstance(info, dict):
            logger.warning("Ignoring voice override for %r: expected an object", role)
            continue
        base = profiles.get(role, profiles[DEFAULT_SPEAKER])
        profiles[role] = VoiceProfile(
            name=info.get("name", base.name),
            language_code=info.get("languageCode", base.language_code),
            ssml_gender=info.get("ssmlGender", base.ssml_gender),
            edge_name=info.get("edgeName", base.edge_name),
        )
    return profiles
