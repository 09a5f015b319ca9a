import pytest

pytest.importorskip("PyQt5")
pytest.importorskip("pyproj")

from flight_core.model import TrackFix, TrackRecord, VideoRecord
from flightsync.core.clock import Clock
from flightsync.core.entities import Flight, PilotRegistry, Video
from flightsync.core.media import DetachedMediaElement
from flightsync.core.resolver import ActiveEntityResolver


def _flight(name, start, stop):
    fixes = [TrackFix(t * 1000, 46.0, 7.0 + t * 1e-4, 1000.0) for t in range(start, stop + 1)]
    return Flight.from_record(name, TrackRecord("alice", fixes), window=4)


def _video(name, start, duration):
    record = VideoRecord(filename=name, timestamp=start * 1000, duration=duration)
    return Video.create(record, DetachedMediaElement(name))


def _setup():
    pilots = PilotRegistry(["#fff"])
    alice = pilots.ensure("alice")
    flights = [_flight("a.json", 10, 20), _flight("b.json", 30, 40)]
    for flight in flights:
        alice.add(flight)
    resolver = ActiveEntityResolver(pilots)
    resolver.change_pilot(alice)
    clock = Clock()
    clock.set_bounds(0, 50)
    clock.ticked.connect(resolver.on_tick)
    return pilots, resolver, clock, flights


def test_one_notification_per_boundary_crossing():
    _pilots, resolver, clock, (first, second) = _setup()
    events = []
    resolver.flight_changed.connect(lambda old, new: events.append((old, new)))

    for t in [0, 5, 12, 15, 19, 22, 25, 28, 31, 35]:
        clock.current_time = t
        clock.raise_tick()

    assert events == [(None, first), (first, None), (None, second)]
    assert resolver.active_flight is second
    assert resolver.tracked_position is not None


def test_leaving_flight_clears_tracked_position():
    _pilots, resolver, clock, _flights = _setup()
    clock.current_time = 15
    clock.raise_tick()
    clock.current_time = 25
    clock.raise_tick()

    assert resolver.active_flight is None
    assert resolver.tracked_position is None


def test_any_pilot_videos_fill_in_for_selected_pilot():
    pilots, resolver, clock, _flights = _setup()
    shared = _video("shared.mp4", 12, 2)
    own = _video("own.mp4", 16, 2)
    pilots.any.add(shared)
    pilots.get("alice").add(own)
    changes = []
    resolver.video_changed.connect(lambda old, new: changes.append(new))

    for t in (13, 16.5, 19):
        clock.current_time = t
        clock.raise_tick()

    assert changes == [shared, own, None]
    active = resolver.resolve_active(13, pilots.any)
    assert active.video is shared and active.flight is None


def test_pilot_navigation_wraps_and_notifies():
    pilots, resolver, _clock, _flights = _setup()
    bob = pilots.ensure("bob")
    seen = []
    resolver.pilot_changed.connect(lambda old, new: seen.append(new.display_name))

    assert resolver.next_pilot() is bob
    assert resolver.next_pilot() is pilots.any
    assert resolver.prev_pilot() is bob
    resolver.change_pilot(bob)

    assert seen == ["bob", "Any pilot", "bob"]


def test_clear_video_emits_once():
    pilots, resolver, clock, _flights = _setup()
    pilots.any.add(_video("shared.mp4", 12, 2))
    clock.current_time = 13
    clock.raise_tick()
    cleared = []
    resolver.video_changed.connect(lambda old, new: cleared.append((old.name, new)))

    resolver.clear_video()
    resolver.clear_video()

    assert cleared == [("shared.mp4", None)]
