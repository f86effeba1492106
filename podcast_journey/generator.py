"""Script generation: journey preferences → Gemini prompt → episode records."""

import json
import logging
import re
from dataclasses import dataclass

import requests

from podcast_journey.constants import (
    CHARS_PER_MINUTE,
    GEMINI_API_URL,
    GENERATION_TEMPERATURE,
    GENERATION_TIMEOUT,
)
from podcast_journey.errors import GenerationError
from podcast_journey.models import Episode

logger = logging.getLogger(__name__)

CONTENT_STRUCTURE = {
    "Interviews": (
        "- Structure it as an interview, with the Host asking detailed questions\n"
        "- The Speaker gives in-depth answers and real-world examples"
    ),
    "Storytelling": (
        "- Include narrative elements and story-driven explanations\n"
        "- Use anecdotes and case studies to illustrate points"
    ),
}
DEFAULT_CONTENT_STRUCTURE = (
    "- Keep it conversational and interactive\n"
    "- Balance questions, explanations, and practical insights"
)

LEARNING_STYLES = {
    "Step by step": (
        "- Present information in clear, sequential steps\n"
        "- Build concepts progressively from basic to advanced"
    ),
    "Big picture first": (
        "- Start with the overall concept before diving into details\n"
        "- Explain the 'why' before the 'how'"
    ),
    "Through examples": (
        "- Use plenty of concrete examples and real-world applications\n"
        "- Include practical scenarios and case studies"
    ),
    "By doing": (
        "- Focus on practical applications and actionable insights\n"
        "- Include tips the listener can immediately implement"
    ),
}
DEFAULT_LEARNING_STYLE = "- Use a balanced mix of explanation methods"

_FENCED_JSON_RE = re.compile(r"```json([\s\S]*?)```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


@dataclass
class JourneyRequest:
    """Answers collected by the journey questionnaire."""
    topic: str
    experience_level: str = "beginner"
    focus: str = "the fundamentals"
    episode_length: int = 10       # minutes
    episode_count: int = 3
    content_type: str = ""
    learning_style: str = ""
    tone: str = ""

    def preferences(self) -> dict:
        """Optional answers, keyed as they are stored on a journey record."""
        prefs = {}
        if self.content_type:
            prefs["contentType"] = self.content_type
        if self.learning_style:
            prefs["learningStyle"] = self.learning_style
        if self.tone:
            prefs["tone"] = self.tone
        return prefs


def build_prompt(request: JourneyRequest) -> str:
    tone = request.tone or "friendly and engaging"
    target_length = round(request.episode_length * CHARS_PER_MINUTE)
    structure = CONTENT_STRUCTURE.get(request.content_type, DEFAULT_CONTENT_STRUCTURE)
    style = LEARNING_STYLES.get(request.learning_style, DEFAULT_LEARNING_STYLE)

    return f"""Create an engaging podcast series about {request.topic}.

AUDIENCE & EXPERIENCE:
- The listener is a {request.experience_level} in this subject
- They want to focus on {request.focus}
- Their preferred learning style is: {request.learning_style or "varied approaches"}

CONTENT PREFERENCES:
- Content type preference: {request.content_type or "conversational"}
- Tone should be: {tone}
- Each episode should be approximately {target_length} words ({request.episode_length} minutes)
- Total episodes needed: {request.episode_count}

CONVERSATION FORMAT:
Two speakers, a Host and an expert Speaker, in natural dialogue:
- Host: asks questions, guides the conversation, provides transitions
- Speaker: provides expertise, explanations, and insights

CONTENT STRUCTURE:
{structure}

LEARNING STYLE ADAPTATION:
{style}

For each episode, provide a catchy title, a brief description (2-3 sentences)
and a complete script.

SCRIPT FORMAT:
- Start with "[Intro Music fades in and out]"
- Use "**Host:**" for all host dialogue
- Use "**Speaker:**" for all expert dialogue
- End with "[Outro Music fades in]"
- Maintain the {tone} tone throughout

Format as a JSON array with keys: title, description, and script for each episode."""


def _extract_json_text(text: str) -> str:
    """Fenced ```json block, else the outermost {...} or [...], else the text itself."""
    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        return fenced.group(1).strip()

    candidates = [m for m in (_ARRAY_RE.search(text), _OBJECT_RE.search(text)) if m]
    if candidates:
        # Whichever bracket opens first encloses the other
        return min(candidates, key=lambda m: m.start()).group(0)
    return text.strip()


def parse_generated_episodes(text: str) -> list[dict]:
    """Parse the model's reply into a list of episode dicts.

    Accepts a JSON array, an object with an ``episodes`` key, or a single
    episode object. Raises GenerationError if nothing parses.
    """
    if not isinstance(text, str) or not text.strip():
        raise GenerationError("Empty response from content generation")

    try:
        data = json.loads(_extract_json_text(text))
    except json.JSONDecodeError as e:
        raise GenerationError("Failed to parse podcast content") from e

    if isinstance(data, dict):
        data = data.get("episodes") or [data]
    if not isinstance(data, list):
        raise GenerationError("Generated content is not a list of episodes")

    episodes = [e for e in data if isinstance(e, dict)]
    if not episodes:
        raise GenerationError("Generated content contains no episodes")
    return episodes


def _reply_text(body) -> str:
    try:
        return body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise GenerationError("Unexpected content generation response shape") from e


def generate_script_episodes(
    request: JourneyRequest,
    api_key: str,
    api_url: str = GEMINI_API_URL,
    timeout: float = GENERATION_TIMEOUT,
    session: requests.Session | None = None,
) -> list[Episode]:
    """Ask the model for an episode series and return pending Episode records."""
    if not api_key:
        raise GenerationError("Gemini API key is required for content generation")

    logger.info("Generating podcast content for topic: %s, episodes: %d", request.topic, request.episode_count)
    body = {
        "contents": [{"parts": [{"text": build_prompt(request)}]}],
        "generationConfig": {"temperature": GENERATION_TEMPERATURE},
    }
    session = session or requests.Session()
    try:
        response = session.post(api_url, params={"key": api_key}, json=body, timeout=timeout)
        response.raise_for_status()
        reply = response.json()
    except requests.RequestException as e:
        raise GenerationError(f"Content generation request failed: {e}") from e
    except ValueError as e:
        raise GenerationError("Content generation returned a non-JSON body") from e

    records = parse_generated_episodes(_reply_text(reply))
    episodes = [Episode.from_dict(r) for r in records]
    for episode in episodes:
        length = len(episode.script) if isinstance(episode.script, str) else 0
        logger.debug('Generated "%s": %d script characters', episode.title, length)
    logger.info("Successfully generated %d episodes", len(episodes))
    return episodes
