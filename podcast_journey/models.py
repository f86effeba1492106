"""Data models for podcast episode production."""

from dataclasses import dataclass, field

SEGMENT_SPEECH = "speech"
SEGMENT_SOUND = "sound"

STATUS_PENDING = "pending"
STATUS_GENERATING = "generating"
STATUS_PROCESSING = "processing"
STATUS_READY = "ready"
STATUS_FAILED = "failed"
EPISODE_STATUSES = (
    STATUS_PENDING,
    STATUS_GENERATING,
    STATUS_PROCESSING,
    STATUS_READY,
    STATUS_FAILED,
)

# Record keys owned by Episode; anything else is carried in Episode.extra
_EPISODE_KEYS = {
    "title", "description", "script", "audioUrl", "status",
    "hadAudio", "isFallbackAudio", "error",
}
_JOURNEY_KEYS = {
    "id", "topic", "experienceLevel", "focus", "episodeLength",
    "episodeCount", "episodes", "createdAt",
}


@dataclass
class Segment:
    type: str          # "speech" or "sound"
    text: str
    speaker: str = ""  # speech only; "" before the first speaker marker


@dataclass
class VoiceProfile:
    name: str
    language_code: str = "en-US"
    ssml_gender: str | None = None
    edge_name: str = "en-US-GuyNeural"   # voice used by the edge-tts backend

    def to_request(self) -> dict:
        voice = {"languageCode": self.language_code, "name": self.name}
        if self.ssml_gender:
            voice["ssmlGender"] = self.ssml_gender
        return voice


@dataclass
class AudioConfig:
    audio_encoding: str = "MP3"
    speaking_rate: float = 1.0
    pitch: float = 0.0

    def to_request(self) -> dict:
        return {
            "audioEncoding": self.audio_encoding,
            "speakingRate": self.speaking_rate,
            "pitch": self.pitch,
        }


@dataclass
class Episode:
    title: str = ""
    description: str = ""
    script: object = None          # str, list of turns, mapping, or None
    audio_url: str | None = None   # data URI once synthesized
    status: str = STATUS_PENDING
    had_audio: bool = False        # sticky: audio was produced at least once
    is_fallback_audio: bool = False
    error: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Episode":
        """Build an Episode from a camelCase record, keeping unknown keys.

        An unrecognized status reads as pending.
        """
        status = data.get("status")
        return cls(
            title=data.get("title") or "",
            description=data.get("description") or "",
            script=data.get("script"),
            audio_url=data.get("audioUrl") or None,
            status=status if status in EPISODE_STATUSES else STATUS_PENDING,
            had_audio=bool(data.get("hadAudio", False)),
            is_fallback_audio=bool(data.get("isFallbackAudio", False)),
            error=data.get("error"),
            extra={k: v for k, v in data.items() if k not in _EPISODE_KEYS},
        )

    def to_dict(self, include_audio: bool = True) -> dict:
        record = dict(self.extra)
        record.update({
            "title": self.title,
            "description": self.description,
            "script": self.script,
            "status": self.status,
            "hadAudio": self.had_audio,
        })
        if self.is_fallback_audio:
            record["isFallbackAudio"] = True
        if self.error:
            record["error"] = self.error
        if include_audio and self.audio_url:
            record["audioUrl"] = self.audio_url
        return record


@dataclass
class Journey:
    topic: str
    experience_level: str = ""
    focus: str = ""
    episode_length: int = 0        # minutes
    episode_count: int = 0
    episodes: list[Episode] = field(default_factory=list)
    created_at: str | None = None
    id: str | None = None
    extra: dict = field(default_factory=dict)   # contentType, learningStyle, tone...

    @classmethod
    def from_dict(cls, data: dict) -> "Journey":
        return cls(
            topic=data.get("topic", ""),
            experience_level=data.get("experienceLevel", ""),
            focus=data.get("focus", ""),
            episode_length=data.get("episodeLength", 0),
            episode_count=data.get("episodeCount", 0),
            episodes=[Episode.from_dict(e) for e in data.get("episodes") or [] if isinstance(e, dict)],
            created_at=data.get("createdAt"),
            id=data.get("id"),
            extra={k: v for k, v in data.items() if k not in _JOURNEY_KEYS},
        )

    def to_dict(self, include_audio: bool = True) -> dict:
        record = dict(self.extra)
        record.update({
            "id": self.id,
            "topic": self.topic,
            "experienceLevel": self.experience_level,
            "focus": self.focus,
            "episodeLength": self.episode_length,
            "episodeCount": self.episode_count,
            "episodes": [e.to_dict(include_audio=include_audio) for e in self.episodes],
            "createdAt": self.created_at,
        })
        return record
