"""Bounded cache of synthesized speech keyed by a hash of text, voice and audio settings."""

import hashlib
import json
import logging
import threading
from collections import OrderedDict

from podcast_journey.constants import CACHE_MAX_ENTRIES
from podcast_journey.models import AudioConfig, VoiceProfile

logger = logging.getLogger(__name__)


def cache_key(text: str, voice: VoiceProfile, audio_config: AudioConfig) -> str:
    """sha256 over the full request content, so any change misses the cache."""
    payload = json.dumps(
        {"text": text, "voice": voice.to_request(), "edge": voice.edge_name, "audio": audio_config.to_request()},
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode()).hexdigest()


class SpeechCache:
    """Holds at most ``max_entries`` payloads; the oldest insert is evicted first."""

    def __init__(self, max_entries: int = CACHE_MAX_ENTRIES):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return key in self._entries

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, audio: str) -> None:
        if self.max_entries <= 0:
            return
        with self._lock:
            if key in self._entries:
                self._entries[key] = audio
                return
            self._entries[key] = audio
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Speech cache full — evicted %s", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
