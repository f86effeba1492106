"""All magic numbers and configuration constants."""

MAX_CHUNK_LENGTH = 4800             # chars, upper bound of text per TTS request
MAX_SEGMENTS = 500                  # speech segments synthesized per episode (runaway guard)
PAUSE_MARKER = "..."                # appended to each speech segment for a trailing pause
TTS_RETRY_COUNT = 3                 # max retries per rate-limited TTS call
TTS_RETRY_BASE_DELAY = 1.0          # seconds, base delay for exponential backoff
TTS_CHUNK_DELAY = 1.0               # seconds between chunk requests of one segment
TTS_SEGMENT_DELAY = 0.0             # seconds between speech segments
TTS_TIMEOUT = 60.0                  # seconds, HTTP timeout per TTS request
FALLBACK_DELAY = 10.0               # seconds to wait before trying fallback audio
INTER_EPISODE_DELAY = 5.0           # seconds between episodes in a batch
FALLBACK_TEXT = (
    "This is a podcast episode titled: {title}. "
    "Due to high demand, the full audio will be available shortly."
)
UNKNOWN_EPISODE_TITLE = "Unknown Episode"
AUDIO_DATA_URI_PREFIX = "data:audio/mp3;base64,"
TTS_API_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-pro:generateContent"
GENERATION_TIMEOUT = 300.0          # seconds, content generation is slow
GENERATION_TEMPERATURE = 0.5
CHARS_PER_MINUTE = 150              # rough script length per minute of audio
CACHE_MAX_ENTRIES = 10              # synthesized chunks kept in the speech cache
STORE_FILENAME = "journeys.json"
STORE_MAX_BYTES = 4_000_000         # trim oldest journeys beyond this
STORE_TRIM_BYTES = 3_000_000        # ...down to this
OUTPUT_DIR = "output"
TTS_BACKEND = "google"              # "google" or "edge"
VERSION = "0.1.0"
