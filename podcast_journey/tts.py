"""Speech synthesis with rate-limit retry, chunking, and per-segment degradation."""

import logging
import time

from podcast_journey.assembly import combine_audio_chunks
from podcast_journey.cache import SpeechCache, cache_key
from podcast_journey.constants import PAUSE_MARKER, TTS_RETRY_BASE_DELAY, TTS_RETRY_COUNT
from podcast_journey.errors import NoAudioProducedError, is_rate_limited
from podcast_journey.models import AudioConfig, Segment, SEGMENT_SOUND, VoiceProfile
from podcast_journey.parser import split_into_chunks
from podcast_journey.settings import Settings
from podcast_journey.voices import DEFAULT_AUDIO_CONFIG, resolve_voice

logger = logging.getLogger(__name__)


def call_with_retry(api_call, max_retries: int = TTS_RETRY_COUNT, initial_delay: float = TTS_RETRY_BASE_DELAY):
    """Call api_call(), retrying rate-limited failures with exponential backoff.

    Only 429s and quota 403s are retried; anything else is raised at once.
    The delay before retry k (0-based) is initial_delay * 2**k seconds.
    """
    for attempt in range(max_retries + 1):
        try:
            return api_call()
        except Exception as e:
            if attempt >= max_retries or not is_rate_limited(e):
                raise
            delay = initial_delay * (2 ** attempt)
            logger.warning(
                "API rate limited. Retrying in %.1fs (attempt %d/%d)",
                delay, attempt + 1, max_retries,
            )
            time.sleep(delay)


def synthesize_chunks(
    text: str,
    voice: VoiceProfile,
    client,
    audio_config: AudioConfig | None = None,
    settings: Settings | None = None,
    cache: SpeechCache | None = None,
) -> list[str]:
    """Synthesize text, split into TTS-sized chunks. Returns one payload per chunk."""
    settings = settings or Settings()
    audio_config = audio_config or DEFAULT_AUDIO_CONFIG

    chunks = split_into_chunks(text, settings.max_chunk_length)
    if not chunks:
        raise ValueError("Cannot synthesize empty text")

    payloads = []
    for i, chunk in enumerate(chunks):
        key = cache_key(chunk, voice, audio_config) if cache is not None else None
        cached = cache.get(key) if cache is not None else None
        if cached is not None:
            logger.debug("Chunk %d/%d served from speech cache", i + 1, len(chunks))
            payloads.append(cached)
            continue

        if i > 0 and settings.chunk_delay > 0:
            time.sleep(settings.chunk_delay)

        logger.debug("Synthesizing chunk %d/%d (%d chars)", i + 1, len(chunks), len(chunk))
        audio = call_with_retry(
            lambda: client.synthesize(chunk, voice, audio_config),
            max_retries=settings.max_retries,
            initial_delay=settings.initial_delay,
        )
        if cache is not None:
            cache.put(key, audio)
        payloads.append(audio)

    return payloads


def synthesize_speech(
    text: str,
    voice: VoiceProfile,
    client,
    audio_config: AudioConfig | None = None,
    settings: Settings | None = None,
    cache: SpeechCache | None = None,
) -> str:
    """Synthesize text of any length into a single base64 payload."""
    payloads = synthesize_chunks(text, voice, client, audio_config, settings, cache)
    if len(payloads) == 1:
        return payloads[0]
    return combine_audio_chunks(payloads)


def synthesize_episode_audio(
    segments: list[Segment],
    client,
    settings: Settings | None = None,
    cache: SpeechCache | None = None,
    voices: dict[str, VoiceProfile] | None = None,
    audio_config: AudioConfig | None = None,
) -> str:
    """Synthesize every speech segment and combine the audio in script order.

    Sound segments are skipped. A segment whose synthesis fails is logged and
    left out of the track. Raises NoAudioProducedError if no segment
    produced audio.
    """
    settings = settings or Settings()
    speech_total = sum(1 for s in segments if s.type != SEGMENT_SOUND)

    audio_chunks: list[str] = []
    failures: list[BaseException] = []
    processed = 0

    for seg in segments:
        if seg.type == SEGMENT_SOUND:
            logger.debug("Skipping sound cue: %s", seg.text)
            continue

        if processed >= settings.max_segments:
            logger.warning(
                "Segment limit reached: synthesized %d of %d speech segments",
                processed, speech_total,
            )
            break

        if processed > 0 and settings.segment_delay > 0:
            time.sleep(settings.segment_delay)
        processed += 1

        voice = resolve_voice(seg.speaker, voices)
        logger.info("Generating segment %d/%d (%s)", processed, speech_total, seg.speaker or "unknown")
        try:
            audio_chunks.extend(
                synthesize_chunks(seg.text + PAUSE_MARKER, voice, client, audio_config, settings, cache)
            )
        except Exception as e:
            logger.error("Failed to synthesize segment %d (%s...): %s", processed, seg.text[:50], e)
            failures.append(e)

    if not audio_chunks:
        raise NoAudioProducedError("No audio segments were successfully generated", failures=failures)

    if failures:
        logger.warning("%d of %d speech segments missing from episode audio", len(failures), processed)
    return combine_audio_chunks(audio_chunks)
