import pytest

pytest.importorskip("PyQt5")

from flight_core.model import VideoRecord
from flightsync.core.clock import Clock
from flightsync.core.entities import Video
from flightsync.core.media import DetachedMediaElement, ImageElement
from flightsync.core.media_sync import MediaSynchronizer


def _video(rate=1.0, start=10, duration=30, element=None):
    record = VideoRecord(filename="clip.mp4", timestamp=start * 1000, duration=duration, rate=rate)
    return Video.create(record, element or DetachedMediaElement("clip.mp4"))


def _clock(rate=50.0, current=20.0):
    clock = Clock(rate=rate)
    clock.set_bounds(0, 100)
    clock.current_time = current
    return clock


def test_activation_adopts_video_rate_and_restores_on_deactivate():
    clock = _clock(rate=50.0)
    sync = MediaSynchronizer(clock)
    video = _video(rate=2.0)

    sync.on_video_changed(None, video)
    assert clock.rate == 2.0
    assert video.element.visible
    assert sync.original_rate == 50.0

    sync.on_video_changed(video, None)
    assert clock.rate == 50.0
    assert not video.element.visible
    assert video.element.paused
    assert sync.active is None


def test_reverse_playback_creeps_forward_slowly():
    clock = _clock(rate=-50.0)
    sync = MediaSynchronizer(clock)
    video = _video(rate=2.0)

    sync.activate(video)

    assert clock.rate == -2.0
    assert video.element.playback_rate == pytest.approx(0.1)
    assert video.element.playback_rate > 0


def test_direction_survives_deactivation():
    clock = _clock(rate=50.0)
    sync = MediaSynchronizer(clock)
    sync.activate(_video())

    clock.rate = -clock.rate
    sync.deactivate()

    assert clock.rate == -50.0


def test_sync_seeks_only_when_outside_tolerance():
    clock = _clock(current=20.0)
    sync = MediaSynchronizer(clock)
    video = _video(start=10)
    element = video.element

    sync.activate(video)
    assert element.current_position == 10.0

    element.current_position = 10.5
    clock.raise_tick()
    assert element.current_position == 10.5

    element.current_position = 3.0
    clock.raise_tick()
    assert element.current_position == 10.0


def test_element_follows_clock_running_state():
    clock = _clock()
    sync = MediaSynchronizer(clock)
    video = _video()
    sync.activate(video)
    assert video.element.paused

    clock.running = True
    clock.raise_tick()
    assert not video.element.paused

    clock.running = False
    clock.raise_tick()
    assert video.element.paused


def test_images_are_shown_but_not_driven():
    clock = _clock()
    sync = MediaSynchronizer(clock)
    record = VideoRecord(filename="photo.jpg", timestamp=10_000)
    image = Video.create(record, ImageElement("photo.jpg"), is_image=True)

    sync.activate(image)
    clock.running = True
    clock.raise_tick()

    assert image.element.visible
    assert image.element.paused
    sync.deactivate()
    assert not image.element.visible


def test_switching_videos_disconnects_previous():
    clock = _clock()
    sync = MediaSynchronizer(clock)
    first = _video()
    second = _video(start=40)

    sync.on_video_changed(None, first)
    sync.on_video_changed(first, second)
    first.element.current_position = 0.0
    clock.raise_tick()

    assert first.element.current_position == 0.0
    assert sync.active is second
    assert sync.original_rate == 50.0
    assert clock.rate == 1.0
