import json

import pytest

pytest.importorskip("PyQt5")
pytest.importorskip("pyproj")

from flight_core.model import EntityKind, VideoRecord
from flight_core.seek import Direction
from flightsync.core import config_store as store_mod
from flightsync.core.config_backend import ConfigBackend
from flightsync.core.config_store import ConfigModel, ConfigStore
from flightsync.core.engine import SyncEngine


def _write_track(folder, name, pilot, start, stop):
    fixes = [
        {"timestamp": t * 1000, "latitude": 46.0, "longitude": 7.0 + t * 1e-4, "altitude": 1100}
        for t in range(start, stop + 1, 5)
    ]
    (folder / name).write_text(json.dumps({"pilot": pilot, "fixes": fixes}), encoding="utf-8")


def _engine(tmp_path) -> SyncEngine:
    _write_track(tmp_path, "alice.json", "alice", 100, 200)
    _write_track(tmp_path, "bob.json", "bob", 300, 400)
    metadata = {
        "timezone": "Z",
        "flights": ["alice.json", "bob.json"],
        "videos": [
            {"filename": "clip.mp4", "pilot": "alice", "timestamp": 120_000, "duration": 10, "rate": 2},
        ],
    }
    (tmp_path / "metadata.json").write_text(json.dumps(metadata), encoding="utf-8")
    engine = SyncEngine(ConfigModel())
    engine.load_folder(tmp_path)
    return engine


def _goto(engine, time):
    engine.clock.current_time = time
    engine.clock.raise_tick()


def test_load_folder_selects_first_pilot_and_parks_clock(tmp_path):
    engine = _engine(tmp_path)

    assert engine.resolver.active_pilot.name == "alice"
    assert engine.clock.current_time == 100
    assert (engine.clock.start_time, engine.clock.stop_time) == (100, 400)
    assert engine.resolver.active_flight.name == "alice.json"
    assert engine.active_kind() is EntityKind.FLIGHT


def test_video_activation_switches_clock_rate(tmp_path):
    engine = _engine(tmp_path)
    assert engine.clock.rate == 50.0

    _goto(engine, 125)
    assert engine.resolver.active_video.name == "clip.mp4"
    assert engine.active_kind() is EntityKind.VIDEO
    assert engine.clock.rate == 2.0
    assert engine.resolver.active_video.element.visible

    _goto(engine, 150)
    assert engine.resolver.active_video is None
    assert engine.clock.rate == 50.0


def test_select_switches_pilot_jumps_and_plays(tmp_path):
    engine = _engine(tmp_path)
    bob_flight = engine.session.pilots.get("bob").flights[0].payload

    assert engine.select(bob_flight)
    assert engine.resolver.active_pilot.name == "bob"
    assert engine.clock.current_time == 300
    assert engine.clock.running
    assert engine.resolver.active_flight is bob_flight

    engine.clock.running = False
    assert not engine.select(bob_flight)
    assert not engine.clock.running


def test_delete_active_prefers_video(tmp_path):
    engine = _engine(tmp_path)
    _goto(engine, 125)

    deleted = engine.delete_active()

    assert deleted.name == "clip.mp4"
    assert engine.clock.rate == 50.0
    assert [i.payload.name for i in engine.session.intervals] == ["alice.json", "bob.json"]

    deleted = engine.delete_active()
    assert deleted.name == "alice.json"
    assert engine.resolver.active_flight is None
    assert engine.delete_active() is None


def test_seek_runs_through_the_tick_fan_out(tmp_path):
    engine = _engine(tmp_path)

    result = engine.seek(Direction.FORWARD, snap=True)

    assert result.target == 120
    assert engine.resolver.active_video.name == "clip.mp4"


def test_load_video_parks_clock_on_it(tmp_path):
    engine = _engine(tmp_path)
    record = VideoRecord(filename="late.mp4", pilot="carol", timestamp=500_000, duration=20)

    video = engine.load_video(record)

    assert engine.resolver.active_pilot.name == "carol"
    assert engine.clock.current_time == 500
    assert engine.clock.stop_time == 520
    assert engine.resolver.active_video is video


def test_toggle_running(tmp_path):
    engine = _engine(tmp_path)
    assert engine.toggle_running() is True
    assert engine.clock.running


def test_engine_on_shared_settings_follows_saves(tmp_path, monkeypatch):
    ini_path = tmp_path / "settings.ini"
    ini_path.write_text("[seek]\njump_seconds = 10\n", encoding="utf-8")
    store = ConfigStore(ConfigBackend(str(ini_path)))
    monkeypatch.setattr(store_mod, "_CONFIG_STORE", store)

    engine = SyncEngine()
    pinned = SyncEngine(ConfigModel())
    store.save({"seek": {"jump_seconds": 5, "epsilon": 0.5}, "media": {"sync_tolerance": 2}})

    assert engine.config is store.config
    assert engine.session.config is store.config
    assert engine.seeker.step_seconds == 5.0
    assert engine.seeker.epsilon == 0.5
    assert engine.synchronizer.abs_tolerance == 2.0
    # An engine given its own settings is left alone.
    assert pinned.seeker.step_seconds == 10.0
