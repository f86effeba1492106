"""Parse podcast scripts into speaker segments and split text into TTS-sized chunks."""

import logging
import re

from podcast_journey.constants import MAX_CHUNK_LENGTH
from podcast_journey.models import Segment, SEGMENT_SOUND, SEGMENT_SPEECH

logger = logging.getLogger(__name__)

# Sound cue on its own line: [Intro Music fades in and out]
_SOUND_RE = re.compile(r"^\[.*\]\s*$")

# Speaker turn: **Host:** Welcome to the show.
_SPEAKER_RE = re.compile(r"^\*\*(.*?):\*\*\s*")

# Sentence boundary: after . ! ? followed by whitespace
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def parse_script(script: str) -> list[Segment]:
    """Parse a script into ordered speech and sound segments.

    Grammar, one construct per line:
      [Marker text]        → sound segment (never synthesized)
      **Name:** text       → starts a speech turn for Name
      anything else        → continues the current turn

    Text before the first speaker marker is attributed to speaker "".
    Non-string input yields no segments; callers normalize scripts first.
    """
    if not isinstance(script, str):
        logger.error("Invalid script format: expected str, got %s", type(script).__name__)
        return []

    segments = []
    speaker = ""
    parts: list[str] = []

    def flush():
        text = " ".join(parts)
        if text:
            segments.append(Segment(type=SEGMENT_SPEECH, text=text, speaker=speaker))
        parts.clear()

    for line in script.splitlines():
        if _SOUND_RE.match(line):
            flush()
            segments.append(Segment(type=SEGMENT_SOUND, text=line.rstrip()))
            continue

        match = _SPEAKER_RE.match(line)
        if match:
            flush()
            speaker = match.group(1).strip()
            line = line[match.end():]

        stripped = line.strip()
        if stripped:
            parts.append(stripped)

    flush()
    return segments


def split_into_chunks(text: str, max_length: int = MAX_CHUNK_LENGTH) -> list[str]:
    """Split text at sentence boundaries into chunks of at most max_length chars.

    Sentences are packed greedily. A single sentence longer than max_length is
    passed through as its own oversized chunk rather than cut mid-sentence.
    Empty input gives an empty list.
    """
    if not text or not text.strip():
        return []

    sentences = _SENTENCE_RE.split(text.strip())
    chunks = []
    current = ""

    for sentence in sentences:
        if current and len(current) + 1 + len(sentence) > max_length:
            chunks.append(current)
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence

    if current:
        chunks.append(current)

    oversized = [c for c in chunks if len(c) > max_length]
    if oversized:
        logger.warning("%d chunk(s) exceed %d chars (single long sentence)", len(oversized), max_length)

    return chunks
