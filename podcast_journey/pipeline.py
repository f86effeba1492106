"""Episode audio pipeline: script → segments → speech → episode record.

Episodes are processed strictly one at a time, in input order. Every entry
point returns new Episode records; the inputs are never mutated.
"""

import logging
import threading
import time
from dataclasses import replace

from podcast_journey.assembly import to_data_uri
from podcast_journey.cache import SpeechCache
from podcast_journey.constants import FALLBACK_TEXT, UNKNOWN_EPISODE_TITLE
from podcast_journey.errors import NoAudioProducedError, ScriptShapeError, TtsApiError, is_rate_limited
from podcast_journey.models import (
    Episode,
    Journey,
    STATUS_FAILED,
    STATUS_GENERATING,
    STATUS_PROCESSING,
    STATUS_READY,
)
from podcast_journey.normalize import normalize_script
from podcast_journey.parser import parse_script
from podcast_journey.settings import Settings
from podcast_journey.tts import synthesize_episode_audio, synthesize_speech
from podcast_journey.voices import DEFAULT_AUDIO_CONFIG, FALLBACK_VOICE

logger = logging.getLogger(__name__)


class CancelToken:
    """Set by a caller to stop a batch before its next episode."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class SingleFlight:
    """At most one in-flight job per key."""

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight: set = set()

    def try_acquire(self, key) -> bool:
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def release(self, key) -> None:
        with self._lock:
            self._in_flight.discard(key)

    def in_flight(self, key) -> bool:
        with self._lock:
            return key in self._in_flight


def _failed(episode: Episode, error: str) -> Episode:
    return replace(
        episode,
        status=STATUS_FAILED,
        audio_url=None,
        had_audio=False,
        is_fallback_audio=False,
        error=error,
    )


def _fallback_audio(title: str, client, settings: Settings, cache: SpeechCache | None) -> str:
    text = FALLBACK_TEXT.format(title=title)
    return synthesize_speech(text, FALLBACK_VOICE, client, DEFAULT_AUDIO_CONFIG, settings, cache)


def generate_podcast(
    episode: Episode,
    client,
    settings: Settings | None = None,
    cache: SpeechCache | None = None,
    voices: dict | None = None,
) -> Episode:
    """Generate audio for one episode.

    Returns a copy of the episode that is either ``ready`` (with audio_url),
    ``ready`` with is_fallback_audio=True when throttling forced the short
    placeholder announcement, or ``failed`` with error set.
    """
    settings = settings or Settings()
    title = episode.title or UNKNOWN_EPISODE_TITLE
    logger.info('Processing audio for episode "%s"', title)

    try:
        script = normalize_script(episode.script, title)
    except ScriptShapeError as e:
        logger.error('Missing script for episode "%s"', title)
        return _failed(episode, str(e))

    current = replace(episode, status=STATUS_GENERATING, error=None)
    try:
        segments = parse_script(script)
        logger.info('Episode "%s": %d segments from %d chars of script', title, len(segments), len(script))
        audio = synthesize_episode_audio(segments, client, settings, cache, voices)
    except (TtsApiError, NoAudioProducedError) as e:
        logger.error('Error generating audio for episode "%s": %s', title, e)
        if not is_rate_limited(e):
            return _failed(current, str(e))

        logger.warning('Rate limit hit for "%s", trying fallback audio', title)
        if settings.fallback_delay > 0:
            time.sleep(settings.fallback_delay)
        try:
            fallback = _fallback_audio(title, client, settings, cache)
        except Exception as fallback_error:
            logger.error('Failed to generate even fallback audio for "%s": %s', title, fallback_error)
            return _failed(current, f"{e}; fallback failed: {fallback_error}")

        logger.info('Generated fallback audio for episode "%s"', title)
        return replace(
            current,
            audio_url=to_data_uri(fallback),
            status=STATUS_READY,
            had_audio=True,
            is_fallback_audio=True,
            error=None,
        )
    except Exception as e:
        logger.exception('Unexpected error generating audio for episode "%s"', title)
        return _failed(current, str(e) or type(e).__name__)

    logger.info('Successfully generated audio for episode "%s"', title)
    return replace(
        current,
        audio_url=to_data_uri(audio),
        status=STATUS_READY,
        had_audio=True,
        is_fallback_audio=False,
    )


def generate_audio_for_episodes(
    episodes: list,
    client,
    settings: Settings | None = None,
    cache: SpeechCache | None = None,
    voices: dict | None = None,
    cancel: CancelToken | None = None,
    on_progress=None,
) -> list[Episode]:
    """Generate audio for each episode in order, pausing between episodes.

    Entries may be Episode objects or camelCase dicts. A bad entry or an
    unexpected error becomes a ``failed`` record; the batch always completes.
    If ``cancel`` is set, remaining episodes are returned unchanged.
    on_progress(done, total, episode) is called after each episode.
    """
    settings = settings or Settings()
    if not episodes:
        logger.error("No episodes provided for audio generation")
        return []

    total = len(episodes)
    logger.info("Generating audio for %d episode(s) sequentially", total)
    results: list[Episode] = []

    for i, entry in enumerate(episodes):
        if cancel is not None and cancel.cancelled:
            logger.info("Audio generation cancelled after %d/%d episodes", i, total)
            results.extend(_coerce(e) or Episode(title=UNKNOWN_EPISODE_TITLE) for e in episodes[i:])
            break

        episode = _coerce(entry)
        if episode is None:
            logger.error("Invalid episode object at position %d", i + 1)
            result = _failed(Episode(title=UNKNOWN_EPISODE_TITLE), "Invalid episode data")
        else:
            try:
                result = generate_podcast(episode, client, settings, cache, voices)
            except Exception as e:
                logger.exception('General error processing episode "%s"', episode.title or UNKNOWN_EPISODE_TITLE)
                result = _failed(episode, str(e) or type(e).__name__)

        results.append(result)
        if on_progress is not None:
            on_progress(i + 1, total, result)

        if i < total - 1 and settings.inter_episode_delay > 0:
            logger.info("Episode completed. Waiting %.0fs before the next one", settings.inter_episode_delay)
            time.sleep(settings.inter_episode_delay)

    return results


def _coerce(entry) -> Episode | None:
    if isinstance(entry, Episode):
        return entry
    if isinstance(entry, dict):
        return Episode.from_dict(entry)
    return None


def needs_regeneration(episode: Episode) -> bool:
    """Audio was produced once but is no longer held (e.g. stripped by storage)."""
    return episode.had_audio and not episode.audio_url


def regenerate_episode_audio(
    journey: Journey,
    index: int,
    client,
    guard: SingleFlight,
    store=None,
    settings: Settings | None = None,
    cache: SpeechCache | None = None,
    voices: dict | None = None,
) -> Episode | None:
    """Regenerate one journey episode's audio in place, at most once at a time.

    Returns the episode unchanged if it already has audio, None if another
    regeneration of the same episode is in flight, else the new record (also
    written into journey.episodes). When audio was produced and a store is
    given, the journey is persisted.
    """
    episode = journey.episodes[index]
    if episode.audio_url:
        logger.info("Episode %d already has audio, nothing to regenerate", index + 1)
        return episode

    key = (journey.id, index)
    if not guard.try_acquire(key):
        logger.info("Regeneration of episode %d already in progress", index + 1)
        return None

    try:
        journey.episodes[index] = replace(episode, status=STATUS_PROCESSING)
        result = generate_podcast(journey.episodes[index], client, settings, cache, voices)
        journey.episodes[index] = result
        if store is not None and result.audio_url:
            store.update(journey)
        return result
    finally:
        guard.release(key)
