"""Coerce the script shapes content generators return into the script grammar.

Generated episodes carry their script as a plain string, as a list of turn
records, or as some other JSON object. ``classify_script`` tags which of these
a value is; ``normalize_script`` turns every tag except ``missing`` into the
``**Speaker:** text`` / ``[marker]`` string that ``parser.parse_script`` reads.
"""

import json
import logging

from podcast_journey.errors import ScriptShapeError

logger = logging.getLogger(__name__)

SCRIPT_MISSING = "missing"
SCRIPT_TEXT = "text"
SCRIPT_TURNS = "turns"
SCRIPT_OBJECT = "object"


def classify_script(script) -> str:
    if script is None:
        return SCRIPT_MISSING
    if isinstance(script, str):
        return SCRIPT_TEXT if script.strip() else SCRIPT_MISSING
    if isinstance(script, (list, tuple)):
        return SCRIPT_TURNS if script else SCRIPT_MISSING
    if isinstance(script, dict) and not script:
        return SCRIPT_MISSING
    return SCRIPT_OBJECT


def normalize_script(script, title: str = "") -> str:
    """Return the script as a grammar string. Raises ScriptShapeError if missing."""
    kind = classify_script(script)
    if kind == SCRIPT_MISSING:
        raise ScriptShapeError("Missing script content")
    if kind == SCRIPT_TEXT:
        return script
    if kind == SCRIPT_TURNS:
        return "\n\n".join(_format_item(item) for item in script)

    lines = _extract_object_lines(script) if isinstance(script, dict) else []
    if lines:
        logger.info("Extracted %d dialogue lines from script object", len(lines))
        return "\n\n".join(lines)

    logger.warning("Could not extract dialogue from script object; embedding it as JSON")
    return (
        f"[Intro Music]\n\n"
        f"**Host:** Welcome to our podcast about {title}.\n\n"
        f"{json.dumps(script, indent=2, default=str)}\n\n"
        f"**Host:** Thanks for listening!"
    )


def _turn_text(item: dict) -> str:
    return item.get("text") or item.get("line") or ""


def _format_item(item) -> str:
    if isinstance(item, dict):
        if item.get("speaker") and _turn_text(item):
            return f"**{item['speaker']}:** {_turn_text(item)}"
        if item.get("soundEffect"):
            return f"[{item['soundEffect']}]"
    return str(item)


def _extract_object_lines(script: dict) -> list[str]:
    numeric_keys = [k for k in script if str(k).strip().lstrip("-").isdigit()]
    if numeric_keys:
        # {"0": {"speaker": ..., "line": ...}, "1": ...}
        lines = []
        for key in sorted(numeric_keys, key=lambda k: int(str(k).strip())):
            turn = script[key]
            if isinstance(turn, dict) and turn.get("speaker"):
                lines.append(f"**{turn['speaker']}:** {_turn_text(turn)}")
        return lines

    dialogue = script.get("dialogue")
    if isinstance(dialogue, list):
        return [
            f"**{turn['speaker']}:** {_turn_text(turn)}"
            for turn in dialogue
            if isinstance(turn, dict) and turn.get("speaker") and _turn_text(turn)
        ]

    return [f"**{key}:** {value}" for key, value in script.items() if isinstance(value, str)]
