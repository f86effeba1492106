"""Combine base64 audio payloads into one stream and wrap it as a data URI.

Combination is raw byte concatenation of independently encoded MP3 payloads,
not a frame-aware merge. MP3 decoders resynchronise on frame headers, so the
result plays as one track; ``exporter.probe_duration_seconds`` checks this on
real output.
"""

import base64
import binascii
import logging

from podcast_journey.constants import AUDIO_DATA_URI_PREFIX

logger = logging.getLogger(__name__)


def decode_audio(payload: str) -> bytes:
    """Strict base64 decode. Raises ValueError on malformed input."""
    if not isinstance(payload, (str, bytes)):
        raise ValueError(f"Audio payload must be base64 text, got {type(payload).__name__}")
    return base64.b64decode(payload, validate=True)


def encode_audio(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def combine_audio_chunks(chunks: list[str]) -> str:
    """Concatenate base64 audio chunks in order and return one base64 payload.

    Chunks that fail to decode are dropped with a warning. If none decode, the
    first input chunk is returned unchanged. An empty list raises ValueError.
    """
    if not chunks:
        raise ValueError("No audio chunks to combine")

    buffers = []
    for i, chunk in enumerate(chunks):
        try:
            buffers.append(decode_audio(chunk))
        except (binascii.Error, ValueError) as e:
            logger.warning("Dropping undecodable audio chunk %d/%d: %s", i + 1, len(chunks), e)

    if not buffers:
        logger.error("No valid audio chunks to combine — returning first chunk unchanged")
        return chunks[0]

    combined = b"".join(buffers)
    logger.debug("Combined %d audio chunks (%d bytes)", len(buffers), len(combined))
    return encode_audio(combined)


def to_data_uri(payload: str) -> str:
    return AUDIO_DATA_URI_PREFIX + payload


def from_data_uri(uri: str) -> str:
    """Return the base64 payload of an audio data URI."""
    if not uri.startswith("data:") or ";base64," not in uri:
        raise ValueError("Not a base64 data URI")
    return uri.split(";base64,", 1)[1]
