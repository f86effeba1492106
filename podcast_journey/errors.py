"""Exception types and rate-limit classification."""

from collections.abc import Iterable


class TtsApiError(RuntimeError):
    """A TTS backend call failed.

    ``status`` is the HTTP status when the server answered, ``None`` for
    transport failures. ``payload_message`` is ``error.message`` from the
    response body, if any.
    """

    def __init__(self, message: str, *, status: int | None = None, payload_message: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.payload_message = payload_message or ""

    @property
    def rate_limited(self) -> bool:
        if self.status == 429:
            return True
        return self.status == 403 and "quota" in self.payload_message.lower()


class NoAudioProducedError(RuntimeError):
    """Every speech segment of an episode failed or was skipped."""

    def __init__(self, message: str, failures: list[BaseException] | None = None) -> None:
        super().__init__(message)
        self.failures = list(failures or [])

    @property
    def rate_limited(self) -> bool:
        return any(is_rate_limited(f) for f in self.failures)


class ScriptShapeError(ValueError):
    """Episode script is missing or cannot be coerced to the script grammar."""


class GenerationError(RuntimeError):
    """Content generation failed or returned an unparsable reply."""


def _iter_exception_chain(exc: BaseException) -> Iterable[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        yield current
        seen.add(id(current))
        current = current.__cause__ or current.__context__


def is_rate_limited(exc: BaseException) -> bool:
    """True for 429s, 403s with a quota message, and errors caused by them."""
    for item in _iter_exception_chain(exc):
        if isinstance(item, (TtsApiError, NoAudioProducedError)) and item.rate_limited:
            return True
    return False
