"""Export episode audio as MP3 files with an output.json manifest."""

import io
import json
import logging
import os
import re
from datetime import datetime, timezone

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from podcast_journey.assembly import decode_audio, from_data_uri
from podcast_journey.constants import VERSION
from podcast_journey.models import Journey

logger = logging.getLogger(__name__)


def slugify(title: str) -> str:
    """"Intro to Rust: Ownership" → "intro_to_rust_ownership"."""
    return re.sub(r"[^a-zA-Z0-9]+", "_", title).strip("_").lower() or "episode"


def episode_filename(index: int, title: str) -> str:
    return f"{index + 1:02d}_{slugify(title)}.mp3"


def probe_duration_seconds(audio: bytes) -> float | None:
    """Decode MP3 bytes with pydub and return the duration, or None if undecodable.

    Concatenated MP3 frames usually decode as one stream; a failure here
    means the combined buffer is not playable as-is.
    """
    try:
        segment = AudioSegment.from_file(io.BytesIO(audio), format="mp3")
    except CouldntDecodeError:
        return None
    return round(len(segment) / 1000, 1)


def export_journey(journey: Journey, output_dir: str) -> str:
    """Write every episode that holds audio to output_dir.

    Creates:
      - <output_dir>/episodes/NN_<slug>.mp3 (one per episode with audio)
      - <output_dir>/output.json (provenance manifest)

    Returns path to the manifest.
    """
    episodes_dir = os.path.join(output_dir, "episodes")
    os.makedirs(episodes_dir, exist_ok=True)

    entries = []
    for i, episode in enumerate(journey.episodes):
        entry = {
            "index": i + 1,
            "title": episode.title,
            "status": episode.status,
            "had_audio": episode.had_audio,
            "is_fallback_audio": episode.is_fallback_audio,
            "file": None,
            "bytes": 0,
            "duration_seconds": None,
        }
        if episode.error:
            entry["error"] = episode.error

        if episode.audio_url:
            try:
                audio = decode_audio(from_data_uri(episode.audio_url))
            except ValueError as e:
                logger.warning("Episode %d has unreadable audio, not exported: %s", i + 1, e)
            else:
                filename = episode_filename(i, episode.title)
                with open(os.path.join(episodes_dir, filename), "wb") as f:
                    f.write(audio)
                entry["file"] = os.path.join("episodes", filename)
                entry["bytes"] = len(audio)
                entry["duration_seconds"] = probe_duration_seconds(audio)
                if entry["duration_seconds"] is None:
                    logger.warning("Could not decode exported audio for episode %d", i + 1)
        entries.append(entry)

    manifest = {
        "journey": {
            "id": journey.id,
            "topic": journey.topic,
            "experience_level": journey.experience_level,
            "focus": journey.focus,
            "episode_length": journey.episode_length,
            "created_at": journey.created_at,
        },
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "producer_version": VERSION,
        "episodes": entries,
        "stats": {
            "episodes": len(entries),
            "exported": sum(1 for e in entries if e["file"]),
            "fallback": sum(1 for e in entries if e["is_fallback_audio"]),
            "duration_seconds": round(sum(e["duration_seconds"] or 0 for e in entries), 1),
        },
    }

    manifest_path = os.path.join(output_dir, "output.json")
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    return manifest_path
