import json

import pytest

from flight_core.errors import LoadError
from flightsync.core.metadata import (
    read_metadata,
    read_track_json,
    video_record_from_metadata,
    write_snapshot,
)


def test_read_metadata_missing_file_is_empty(tmp_path, caplog):
    caplog.set_level("INFO")
    assert read_metadata(tmp_path) == {}
    assert "blank session" in caplog.text


def test_read_metadata_ignores_invalid_json(tmp_path, caplog):
    (tmp_path / "metadata.json").write_text("{not json", encoding="utf-8")
    assert read_metadata(tmp_path) == {}
    assert "Couldn't load" in caplog.text


def test_read_metadata_requires_an_object(tmp_path):
    (tmp_path / "metadata.json").write_text("[1, 2]", encoding="utf-8")
    assert read_metadata(tmp_path) == {}


def test_video_record_accepts_flat_and_nested_positions():
    flat = video_record_from_metadata(
        {"filename": "a.mp4", "pilot": "alice", "latitude": 46.0, "longitude": 7.0, "altitude": 800}
    )
    nested = video_record_from_metadata(
        {"filename": "b.mp4", "position": {"latitude": 45.0, "longitude": 6.0}}
    )

    assert (flat.pilot, flat.latitude, flat.longitude, flat.altitude) == ("alice", 46.0, 7.0, 800)
    assert (nested.pilot, nested.latitude, nested.longitude, nested.altitude) == ("", 45.0, 6.0, None)


def test_video_record_requires_filename():
    with pytest.raises(LoadError):
        video_record_from_metadata({"pilot": "alice"})
    with pytest.raises(LoadError):
        video_record_from_metadata("clip.mp4")


def test_read_track_json(tmp_path):
    path = tmp_path / "alice.json"
    path.write_text(
        json.dumps(
            {
                "pilot": "alice",
                "fixes": [
                    {"timestamp": 1000, "latitude": "46.5", "longitude": 7, "altitude": 900},
                    {"timestamp": 2000, "latitude": 46.6, "longitude": 7.1},
                ],
            }
        ),
        encoding="utf-8",
    )

    record = read_track_json(path)

    assert record.pilot == "alice"
    assert [f.timestamp for f in record.fixes] == [1000, 2000]
    assert record.fixes[0].latitude == 46.5
    assert record.fixes[1].altitude == 0.0


@pytest.mark.parametrize(
    "content, message",
    [
        (None, "not found"),
        ("{oops", "Couldn't load"),
        ('{"fixes": [{"timestamp": 1}]}', "Malformed fix"),
    ],
)
def test_read_track_json_errors(tmp_path, content, message):
    path = tmp_path / "track.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")
    with pytest.raises(LoadError, match=message):
        read_track_json(path)


def test_write_snapshot_creates_parent_folders(tmp_path):
    target = tmp_path / "out" / "snapshot.json"
    snapshot = {"flights": ["a.json"], "videos": [], "timezone": 0.0, "trailing": None}

    write_snapshot(target, snapshot)

    assert json.loads(target.read_text(encoding="utf-8")) == snapshot
