"""
media.py

The media-element interface the synchronizer drives, plus file type
helpers. A front-end supplies its own element class (a Qt multimedia
player, a browser video, ...) by overriding the hooks below.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Optional, Sequence


class MediaElement:
    """
    Playback surface for one video or image.
    - current_position: playback position in media seconds
    - playback_rate: media-local speed (never negative)
    - duration: media length in seconds once metadata is known
    - playable: False for still images, which have no timeline
    """

    playable = True

    def __init__(self, source: str = "", duration: Optional[float] = None):
        self.source = source
        self.current_position = 0.0
        self.playback_rate = 1.0
        self.duration = duration
        self.paused = True
        self.visible = False

    def play(self) -> None:
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def wait_for_metadata(self, timeout: float) -> bool:
        """Block up to `timeout` seconds for metadata; True once it is available."""
        return self.duration is not None


class ImageElement(MediaElement):
    playable = False


class DetachedMediaElement(MediaElement):
    """In-memory element used when no front-end is attached."""

    def __repr__(self) -> str:
        state = "paused" if self.paused else "playing"
        return f"DetachedMediaElement({self.source!r}, {state}, at={self.current_position:.2f})"


def default_element_factory(source: str, is_image: bool) -> MediaElement:
    if is_image:
        return ImageElement(source)
    return DetachedMediaElement(source)


def assume_file_type(filename: str, *ext_lists: Sequence[str]) -> Optional[Sequence[str]]:
    """Return the first extension list whose entries match `filename`."""
    suffix = PurePath(filename.lower()).suffix
    for exts in ext_lists:
        if suffix and suffix in exts:
            return exts
    return None
