"""CLI interface with subcommand routing and pipeline orchestration."""

import argparse
import json
import logging
import os
import shutil
import signal
import sys

from podcast_journey.assembly import encode_audio, to_data_uri
from podcast_journey.cache import SpeechCache
from podcast_journey.clients import create_client
from podcast_journey.constants import STORE_FILENAME, VERSION
from podcast_journey.errors import GenerationError, ScriptShapeError
from podcast_journey.exporter import episode_filename, export_journey
from podcast_journey.generator import JourneyRequest, generate_script_episodes
from podcast_journey.models import Episode, Journey, SEGMENT_SOUND, STATUS_FAILED, STATUS_READY
from podcast_journey.normalize import normalize_script
from podcast_journey.parser import parse_script, split_into_chunks
from podcast_journey.pipeline import (
    CancelToken,
    SingleFlight,
    generate_audio_for_episodes,
    needs_regeneration,
    regenerate_episode_audio,
)
from podcast_journey.settings import Settings, load_settings
from podcast_journey.storage import JourneyStore
from podcast_journey.voices import FALLBACK_VOICE, VOICE_PROFILES, load_voice_overrides


def _check_ffmpeg():
    """Verify ffmpeg is installed."""
    if not shutil.which("ffmpeg"):
        print("Error: ffmpeg is required but not found.", file=sys.stderr)
        print("Install with: brew install ffmpeg", file=sys.stderr)
        raise SystemExit(1)


def _settings(args) -> Settings:
    return load_settings(args.settings)


def _voices(args):
    return load_voice_overrides(args.voices) if args.voices else None


def _store(settings: Settings) -> JourneyStore:
    return JourneyStore(os.path.join(settings.output_dir, STORE_FILENAME))


def _get_journey(store: JourneyStore, journey_id: str) -> Journey:
    """Load a journey, exit if it does not exist."""
    journey = store.get_by_id(journey_id)
    if journey is None:
        print(f"Error: Journey '{journey_id}' not found.", file=sys.stderr)
        print("Run 'podcast-journey list' to see saved journeys.", file=sys.stderr)
        raise SystemExit(1)
    return journey


def _get_client(settings: Settings):
    try:
        return create_client(settings)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        if settings.tts_backend == "google":
            print("Set GOOGLE_TTS_API_KEY, or use PODCAST_TTS_BACKEND=edge.", file=sys.stderr)
        raise SystemExit(1)


def _journey_dir(settings: Settings, journey: Journey) -> str:
    return os.path.join(settings.output_dir, journey.id)


def _attach_exported_audio(journey: Journey, journey_dir: str) -> int:
    """Put previously exported MP3s back onto episodes that lost their audio.

    Returns how many episodes were restored.
    """
    restored = 0
    for i, episode in enumerate(journey.episodes):
        if episode.audio_url:
            continue
        path = os.path.join(journey_dir, "episodes", episode_filename(i, episode.title))
        if not os.path.exists(path):
            continue
        with open(path, "rb") as f:
            episode.audio_url = to_data_uri(encode_audio(f.read()))
        episode.status = STATUS_READY
        restored += 1
    return restored


def _status_marker(episode: Episode) -> str:
    if needs_regeneration(episode):
        return "[lost]"
    if episode.status == STATUS_READY and episode.is_fallback_audio:
        return "[fall]"
    if episode.status == STATUS_READY:
        return "[done]"
    if episode.status == STATUS_FAILED:
        return "[FAIL]"
    return "[----]"


def _print_progress(done: int, total: int, episode: Episode):
    print(f"  {_status_marker(episode)} {done}/{total} {episode.title}")
    if episode.error:
        print(f"         {episode.error}")


def cmd_new(args):
    """Generate a new journey's scripts and save it."""
    settings = _settings(args)
    request = JourneyRequest(
        topic=args.topic,
        experience_level=args.level,
        focus=args.focus,
        episode_length=args.length,
        episode_count=args.episodes,
        content_type=args.content_type or "",
        learning_style=args.learning_style or "",
        tone=args.tone or "",
    )

    print(f"Generating {args.episodes} episode script(s) about {args.topic}...")
    try:
        episodes = generate_script_episodes(
            request, settings.gemini_api_key, api_url=settings.gemini_api_url,
        )
    except GenerationError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    journey = Journey(
        topic=request.topic,
        experience_level=request.experience_level,
        focus=request.focus,
        episode_length=request.episode_length,
        episode_count=len(episodes),
        episodes=episodes,
        extra=request.preferences(),
    )
    journey_id = _store(settings).save(journey)
    print(f"Created journey: {journey_id} ({len(episodes)} episodes)")
    print(f"Run 'podcast-journey run {journey_id}' to generate audio.")


def _episodes_from_file(data) -> list | None:
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("episodes"), list):
        return data["episodes"]
    return None


def cmd_import(args):
    """Create a journey from a JSON file of episodes."""
    settings = _settings(args)
    file_path = args.file

    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: {file_path} is not valid JSON: {e}", file=sys.stderr)
        raise SystemExit(1)

    records = _episodes_from_file(data)
    if not records:
        print(f"Error: No episodes found in: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    if isinstance(data, dict):
        journey = Journey.from_dict(data)
        journey.id = None
    else:
        journey = Journey(topic="")
    journey.episodes = [Episode.from_dict(r) for r in records if isinstance(r, dict)]
    journey.topic = args.topic or journey.topic or os.path.splitext(os.path.basename(file_path))[0]
    journey.episode_count = len(journey.episodes)

    skipped = len(records) - len(journey.episodes)
    journey_id = _store(settings).save(journey)
    print(f"Imported journey: {journey_id} ({len(journey.episodes)} episodes)")
    if skipped:
        print(f"Skipped {skipped} entries that are not episode objects")


def cmd_run(args):
    """Generate audio for a journey and export it."""
    _check_ffmpeg()
    settings = _settings(args)
    store = _store(settings)
    journey = _get_journey(store, args.journey_id)
    journey_dir = _journey_dir(settings, journey)

    if args.force:
        episodes_dir = os.path.join(journey_dir, "episodes")
        if os.path.exists(episodes_dir):
            shutil.rmtree(episodes_dir)
        for episode in journey.episodes:
            episode.audio_url = None
    else:
        restored = _attach_exported_audio(journey, journey_dir)
        if restored:
            print(f"[skip] {restored} episode(s) already exported")

    todo = [i for i, e in enumerate(journey.episodes) if args.force or not e.audio_url]
    if not todo:
        print("All episodes already have audio.")
    else:
        client = _get_client(settings)
        cancel = CancelToken()

        def _cancel(signum, frame):
            print("\nStopping after the current episode...")
            cancel.cancel()

        previous = signal.signal(signal.SIGINT, _cancel)
        print(f"Generating audio for {len(todo)} episode(s)...")
        try:
            results = generate_audio_for_episodes(
                [journey.episodes[i] for i in todo],
                client,
                settings=settings,
                cache=SpeechCache(settings.cache_size),
                voices=_voices(args),
                cancel=cancel,
                on_progress=_print_progress,
            )
        finally:
            signal.signal(signal.SIGINT, previous)
        for i, result in zip(todo, results):
            journey.episodes[i] = result

    manifest = export_journey(journey, journey_dir)
    store.update(journey)

    failed = sum(1 for e in journey.episodes if e.status == STATUS_FAILED)
    print(f"Done: {manifest}")
    if failed:
        print(f"{failed} episode(s) failed. Re-run to retry them.", file=sys.stderr)


def cmd_regenerate(args):
    """Regenerate one episode's audio."""
    _check_ffmpeg()
    settings = _settings(args)
    store = _store(settings)
    journey = _get_journey(store, args.journey_id)

    index = args.episode - 1
    if not 0 <= index < len(journey.episodes):
        print(f"Error: Episode {args.episode} out of range (1-{len(journey.episodes)}).", file=sys.stderr)
        raise SystemExit(1)

    journey_dir = _journey_dir(settings, journey)
    _attach_exported_audio(journey, journey_dir)
    journey.episodes[index].audio_url = None

    client = _get_client(settings)
    print(f"Regenerating episode {args.episode}: {journey.episodes[index].title}")
    result = regenerate_episode_audio(
        journey, index, client, SingleFlight(),
        store=store,
        settings=settings,
        cache=SpeechCache(settings.cache_size),
        voices=_voices(args),
    )
    if result is None:
        print("Error: This episode is already being regenerated.", file=sys.stderr)
        raise SystemExit(1)
    _print_progress(args.episode, len(journey.episodes), result)
    if result.status == STATUS_FAILED:
        raise SystemExit(1)
    print(f"Done: {export_journey(journey, journey_dir)}")


def cmd_segment(args):
    """Show how a script file is segmented and chunked, without synthesis."""
    settings = _settings(args)
    file_path = args.file
    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    with open(file_path) as f:
        text = f.read()
    if file_path.endswith(".json"):
        try:
            text = json.loads(text)
        except json.JSONDecodeError as e:
            print(f"Error: {file_path} is not valid JSON: {e}", file=sys.stderr)
            raise SystemExit(1)

    try:
        script = normalize_script(text, os.path.basename(file_path))
    except ScriptShapeError as e:
        print(f"Error: {e}: {file_path}", file=sys.stderr)
        raise SystemExit(1)

    segments = parse_script(script)
    speech = 0
    calls = 0
    for seg in segments:
        if seg.type == SEGMENT_SOUND:
            print(f"  [sound]   {seg.text}")
            continue
        speech += 1
        chunks = split_into_chunks(seg.text, settings.max_chunk_length)
        calls += len(chunks)
        preview = seg.text if len(seg.text) <= 60 else seg.text[:57] + "..."
        print(f"  {seg.speaker or '(none)':<10}{preview} ({len(chunks)} chunk{'s' if len(chunks) != 1 else ''})")

    print(f"Segments: {len(segments)} ({speech} speech, {len(segments) - speech} sound)")
    print(f"TTS requests: {calls}")


def cmd_status(args):
    """Show journey status."""
    settings = _settings(args)
    journey = _get_journey(_store(settings), args.journey_id)
    _attach_exported_audio(journey, _journey_dir(settings, journey))

    print(f"Journey: {journey.id}")
    print(f"Topic:   {journey.topic}")
    if journey.experience_level or journey.focus:
        print(f"Level:   {journey.experience_level or '-'} / focus: {journey.focus or '-'}")
    print(f"Created: {journey.created_at or 'unknown'}")
    print("Episodes:")
    for i, episode in enumerate(journey.episodes):
        print(f"  {_status_marker(episode)} {i + 1:>2}. {episode.title or '(untitled)'}")
        if episode.error:
            print(f"           {episode.error}")


def cmd_list(args):
    """List saved journeys."""
    settings = _settings(args)
    journeys = _store(settings).get_all()
    if not journeys:
        print("No journeys found.")
        return
    print("Journeys:")
    for journey in journeys:
        ready = sum(1 for e in journey.episodes if e.had_audio)
        print(f"  {journey.id}  {ready}/{len(journey.episodes)} with audio  {journey.topic}")


def cmd_voices(args):
    """List the speaker voice table."""
    profiles = _voices(args) or VOICE_PROFILES
    filter_str = args.filter.lower() if args.filter else None
    rows = list(profiles.items()) + [("(fallback)", FALLBACK_VOICE)]
    if filter_str:
        rows = [(role, v) for role, v in rows if filter_str in f"{role} {v.name} {v.edge_name}".lower()]
    if not rows:
        print("No matching voices found.")
        return
    print("Voices:")
    for role, voice in rows:
        print(f"  {role:<12} → {voice.name} (edge: {voice.edge_name})")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="podcast-journey",
        description="Podcast Journey — turn a learning topic into narrated podcast episodes",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--settings", help="Path to a settings JSON file")
    parser.add_argument("--voices", help="Path to a voice overrides JSON file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # new
    new_parser = subparsers.add_parser("new", help="Generate a new journey's episode scripts")
    new_parser.add_argument("topic", help="What the journey is about")
    new_parser.add_argument("--level", default="beginner", help="Listener experience level")
    new_parser.add_argument("--focus", default="the fundamentals", help="What to focus on")
    new_parser.add_argument("--length", type=int, default=10, help="Episode length in minutes")
    new_parser.add_argument("--episodes", type=int, default=3, help="Number of episodes")
    new_parser.add_argument("--content-type", help="e.g. Interviews, Storytelling")
    new_parser.add_argument("--learning-style", help="e.g. 'Step by step', 'By doing'")
    new_parser.add_argument("--tone", help="e.g. 'casual', 'academic'")
    new_parser.set_defaults(func=cmd_new)

    # import
    import_parser = subparsers.add_parser("import", help="Create a journey from an episodes JSON file")
    import_parser.add_argument("file", help="JSON list of episodes, or an object with 'episodes'")
    import_parser.add_argument("--topic", help="Journey topic (default: from the file)")
    import_parser.set_defaults(func=cmd_import)

    # run
    run_parser = subparsers.add_parser("run", help="Generate audio and export MP3s")
    run_parser.add_argument("journey_id", help="Journey id")
    run_parser.add_argument("--force", action="store_true", help="Regenerate audio for every episode")
    run_parser.set_defaults(func=cmd_run)

    # regenerate
    regen_parser = subparsers.add_parser("regenerate", help="Regenerate one episode's audio")
    regen_parser.add_argument("journey_id", help="Journey id")
    regen_parser.add_argument("episode", type=int, help="Episode number (1-based)")
    regen_parser.set_defaults(func=cmd_regenerate)

    # segment
    segment_parser = subparsers.add_parser("segment", help="Show how a script is segmented")
    segment_parser.add_argument("file", help="Script text file, or JSON script")
    segment_parser.set_defaults(func=cmd_segment)

    # status
    status_parser = subparsers.add_parser("status", help="Show journey status")
    status_parser.add_argument("journey_id", help="Journey id")
    status_parser.set_defaults(func=cmd_status)

    # list
    list_parser = subparsers.add_parser("list", help="List saved journeys")
    list_parser.set_defaults(func=cmd_list)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List speaker voices")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)
