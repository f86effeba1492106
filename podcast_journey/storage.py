"""JSON-file journey store. Audio is never persisted, only the hadAudio flag."""

import hashlib
import json
import logging
import os
import time
from datetime import datetime, timezone

from podcast_journey.constants import OUTPUT_DIR, STORE_FILENAME, STORE_MAX_BYTES, STORE_TRIM_BYTES
from podcast_journey.models import Journey

logger = logging.getLogger(__name__)


def journey_id(topic: str) -> str:
    """Short id from the topic and the current time."""
    seed = f"{topic}{time.time_ns()}"
    return hashlib.sha256(seed.encode()).hexdigest()[:12]


def strip_audio(journey: Journey) -> dict:
    """Serializable journey record with audio removed from every episode.

    hadAudio stays true once set, and becomes true when an audioUrl is
    present at save time.
    """
    record = journey.to_dict(include_audio=False)
    for episode, stored in zip(journey.episodes, record["episodes"]):
        stored["hadAudio"] = episode.had_audio or bool(episode.audio_url)
    return record


class JourneyStore:
    """Persists journeys to a single JSON file (a list of journey records)."""

    def __init__(
        self,
        path: str = os.path.join(OUTPUT_DIR, STORE_FILENAME),
        max_bytes: int = STORE_MAX_BYTES,
        trim_bytes: int = STORE_TRIM_BYTES,
    ):
        self.path = path
        self.max_bytes = max_bytes
        self.trim_bytes = trim_bytes

    def _read(self) -> list[dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path) as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Malformed journey store: %s, treating as empty", self.path)
            return []
        if not isinstance(data, list):
            logger.warning("Journey store %s does not hold a list, treating as empty", self.path)
            return []
        return [r for r in data if isinstance(r, dict)]

    def _write(self, records: list[dict]) -> None:
        if len(json.dumps(records)) > self.max_bytes:
            logger.warning("Journey store is very large, removing oldest journeys")
            while len(records) > 1 and len(json.dumps(records)) > self.trim_bytes:
                dropped = records.pop(0)
                logger.info("Dropped journey %s (%s)", dropped.get("id"), dropped.get("topic"))

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(records, f, indent=2)

    def save(self, journey: Journey) -> str:
        """Add a journey; assigns journey.id and journey.created_at. Returns the id."""
        journey.id = journey_id(journey.topic)
        journey.created_at = datetime.now(timezone.utc).isoformat()
        records = self._read()
        records.append(strip_audio(journey))
        self._write(records)
        logger.info("Journey %s saved (without audio data)", journey.id)
        return journey.id

    def update(self, journey: Journey) -> bool:
        records = self._read()
        for i, record in enumerate(records):
            if record.get("id") == journey.id:
                records[i] = strip_audio(journey)
                self._write(records)
                logger.info("Journey %s updated (without audio data)", journey.id)
                return True
        logger.error("Journey %s not found for update", journey.id)
        return False

    def get_all(self) -> list[Journey]:
        return [Journey.from_dict(r) for r in self._read()]

    def get_by_id(self, id: str) -> Journey | None:
        for record in self._read():
            if record.get("id") == id:
                return Journey.from_dict(record)
        return None

    def delete(self, id: str) -> bool:
        records = self._read()
        kept = [r for r in records if r.get("id") != id]
        if len(kept) == len(records):
            return False
        self._write(kept)
        return True
