"""Tests for the JSON-file journey store."""

import json

from podcast_journey.models import Episode, Journey, STATUS_READY
from podcast_journey.storage import JourneyStore

AUDIO = "data:audio/mp3;base64,QUJD"


def _journey(topic="Rust", audio=True):
    return Journey(
        topic=topic,
        experience_level="beginner",
        episodes=[
            Episode(title="One", script="**Host:** Hi.", status=STATUS_READY,
                    audio_url=AUDIO if audio else None, had_audio=audio),
            Episode(title="Two", script="**Host:** Bye."),
        ],
    )


def test_save_assigns_id_and_timestamp(tmp_path):
    store = JourneyStore(str(tmp_path / "journeys.json"))
    journey = _journey()
    journey_id = store.save(journey)
    assert journey_id
    assert journey.id == journey_id
    assert journey.created_at


def test_save_strips_audio(tmp_path):
    """Audio never reaches disk; hadAudio records that it existed."""
    path = tmp_path / "journeys.json"
    store = JourneyStore(str(path))
    journey_id = store.save(_journey())

    raw = path.read_text()
    assert "base64" not in raw
    loaded = store.get_by_id(journey_id)
    assert loaded.episodes[0].audio_url is None
    assert loaded.episodes[0].had_audio is True
    assert loaded.episodes[1].had_audio is False


def test_had_audio_set_from_audio_url(tmp_path):
    """An episode holding audio is marked hadAudio even if the flag was unset."""
    store = JourneyStore(str(tmp_path / "journeys.json"))
    journey = _journey()
    journey.episodes[0].had_audio = False
    journey_id = store.save(journey)
    assert store.get_by_id(journey_id).episodes[0].had_audio is True


def test_had_audio_sticky_across_updates(tmp_path):
    store = JourneyStore(str(tmp_path / "journeys.json"))
    journey_id = store.save(_journey())
    loaded = store.get_by_id(journey_id)
    assert store.update(loaded)
    assert store.get_by_id(journey_id).episodes[0].had_audio is True


def test_save_does_not_touch_in_memory_audio(tmp_path):
    store = JourneyStore(str(tmp_path / "journeys.json"))
    journey = _journey()
    store.save(journey)
    assert journey.episodes[0].audio_url == AUDIO


def test_update_unknown_journey(tmp_path):
    store = JourneyStore(str(tmp_path / "journeys.json"))
    journey = _journey()
    journey.id = "missing"
    assert store.update(journey) is False


def test_get_all_and_delete(tmp_path):
    store = JourneyStore(str(tmp_path / "journeys.json"))
    first = store.save(_journey("Rust"))
    second = store.save(_journey("Go"))
    assert [j.topic for j in store.get_all()] == ["Rust", "Go"]
    assert store.delete(first) is True
    assert store.delete(first) is False
    assert [j.id for j in store.get_all()] == [second]


def test_missing_file_is_empty(tmp_path):
    store = JourneyStore(str(tmp_path / "none" / "journeys.json"))
    assert store.get_all() == []
    assert store.get_by_id("x") is None


def test_malformed_file_is_empty(tmp_path, caplog):
    path = tmp_path / "journeys.json"
    path.write_text("{oops")
    assert JourneyStore(str(path)).get_all() == []
    assert "Malformed" in caplog.text


def test_size_cap_drops_oldest(tmp_path):
    """Over the cap, oldest journeys are removed until under the trim size."""
    path = tmp_path / "journeys.json"
    store = JourneyStore(str(path), max_bytes=3000, trim_bytes=2000)
    ids = []
    for i in range(10):
        journey = _journey(f"Topic {i}", audio=False)
        journey.episodes[0].script = "x" * 400
        ids.append(store.save(journey))

    kept = [j.id for j in store.get_all()]
    assert kept
    assert kept[-1] == ids[-1]
    assert ids[0] not in kept
    assert len(json.dumps(json.loads(path.read_text()))) <= 3000


def test_size_cap_keeps_at_least_one(tmp_path):
    store = JourneyStore(str(tmp_path / "journeys.json"), max_bytes=10, trim_bytes=5)
    journey_id = store.save(_journey())
    assert [j.id for j in store.get_all()] == [journey_id]


def test_preferences_round_trip(tmp_path):
    store = JourneyStore(str(tmp_path / "journeys.json"))
    journey = _journey()
    journey.extra = {"tone": "casual", "learningStyle": "By doing"}
    loaded = store.get_by_id(store.save(journey))
    assert loaded.extra == {"tone": "casual", "learningStyle": "By doing"}
