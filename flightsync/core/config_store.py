"""QObject-based singleton store for configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional

from PyQt5 import QtCore

from flightsync.core.config_backend import KNOWN_SECTIONS, ConfigBackend

# https://htmlcolorcodes.com/color-chart/
DEFAULT_COLORS = [
    "#3498db", "#F1C40F", "#E67E22", "#2ecc71", "#27AE60", "#16A085", "#1ABC9C",
    "#3498DB", "#8E44AD", "#9B59B6", "#E74C3C", "#C0392B", "#F39C12", "#D35400",
]


@dataclass
class ConfigModel:
    # Playback
    default_rate: float = 50.0
    default_duration_s: float = 5.0
    tick_interval_ms: int = 16

    # Seeking
    jump_seconds: float = 10.0
    seek_epsilon_s: float = 1.0

    # Media synchronisation
    sync_abs_tolerance_s: float = 1.0
    sync_rel_tolerance: float = 0.1
    reverse_creep_rate: float = 0.1
    media_timeout_s: float = 10.0

    # Tracking
    tracker_window: int = 128
    altitude_offset_m: float = 70.0

    # File types
    image_extensions: List[str] = field(default_factory=lambda: [".jpg", ".jpeg", ".png"])
    video_extensions: List[str] = field(default_factory=lambda: [".mp4", ".mov"])
    track_extensions: List[str] = field(default_factory=lambda: [".igc", ".json"])

    colors: List[str] = field(default_factory=lambda: list(DEFAULT_COLORS))


class ConfigStore(QtCore.QObject):
    config_changed = QtCore.pyqtSignal(object)

    def __init__(self, backend: Optional[ConfigBackend] = None) -> None:
        super().__init__()
        self._backend = backend or ConfigBackend()
        self._config = ConfigModel()
        self.reload()

    @property
    def config(self) -> ConfigModel:
        return self._config

    @property
    def backend(self) -> ConfigBackend:
        return self._backend

    def reload(self) -> ConfigModel:
        data = self._backend.load()
        cfg = ConfigModel()

        self._apply_playback_settings(cfg, data.get("playback", {}))
        self._apply_seek_settings(cfg, data.get("seek", {}))
        self._apply_media_settings(cfg, data.get("media", {}))
        self._apply_tracking_settings(cfg, data.get("tracking", {}))

        if cfg.tracker_window <= 0 or cfg.tracker_window % 2:
            raise ValueError(
                f"tracking.window must be a positive even number, got {cfg.tracker_window}"
            )
        if cfg.default_duration_s <= 0:
            raise ValueError(
                f"playback.default_duration must be positive, got {cfg.default_duration_s}"
            )

        self._config = cfg
        self.config_changed.emit(cfg)
        return cfg

    def save(self, section_updates: Mapping[str, Mapping[str, object]]) -> ConfigModel:
        unknown = [s for s in section_updates if s.lower() not in KNOWN_SECTIONS]
        if unknown:
            raise ValueError(f"Unknown settings section(s): {', '.join(unknown)}")
        self._backend.save(section_updates)
        return self.reload()

    def _apply_playback_settings(self, cfg: ConfigModel, playback: Mapping[str, str]) -> None:
        cfg.default_rate = _number(playback, "rate", cfg.default_rate, float, "playback")
        cfg.default_duration_s = _number(
            playback, "default_duration", cfg.default_duration_s, float, "playback"
        )
        cfg.tick_interval_ms = _number(
            playback, "tick_interval_ms", cfg.tick_interval_ms, int, "playback"
        )
        colors = playback.get("colors")
        if colors:
            cfg.colors = [c.strip() for c in colors.split(",") if c.strip()]

    def _apply_seek_settings(self, cfg: ConfigModel, seek: Mapping[str, str]) -> None:
        cfg.jump_seconds = _number(seek, "jump_seconds", cfg.jump_seconds, float, "seek")
        cfg.seek_epsilon_s = _number(seek, "epsilon", cfg.seek_epsilon_s, float, "seek")

    def _apply_media_settings(self, cfg: ConfigModel, media: Mapping[str, str]) -> None:
        cfg.sync_abs_tolerance_s = _number(
            media, "sync_tolerance", cfg.sync_abs_tolerance_s, float, "media"
        )
        cfg.sync_rel_tolerance = _number(
            media, "sync_relative_tolerance", cfg.sync_rel_tolerance, float, "media"
        )
        cfg.reverse_creep_rate = _number(
            media, "reverse_rate", cfg.reverse_creep_rate, float, "media"
        )
        cfg.media_timeout_s = _number(media, "timeout", cfg.media_timeout_s, float, "media")
        cfg.image_extensions = _extensions(media, "image_extensions", cfg.image_extensions)
        cfg.video_extensions = _extensions(media, "video_extensions", cfg.video_extensions)

    def _apply_tracking_settings(self, cfg: ConfigModel, tracking: Mapping[str, str]) -> None:
        cfg.tracker_window = _number(tracking, "window", cfg.tracker_window, int, "tracking")
        cfg.altitude_offset_m = _number(
            tracking, "altitude_offset", cfg.altitude_offset_m, float, "tracking"
        )
        cfg.track_extensions = _extensions(tracking, "track_extensions", cfg.track_extensions)


def _number(section: Mapping[str, str], key: str, fallback, cast: Callable, name: str):
    raw = section.get(key)
    if raw is None or raw == "":
        return fallback
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}.{key}: {raw!r}") from exc


def _extensions(section: Mapping[str, str], key: str, fallback: List[str]) -> List[str]:
    raw = section.get(key)
    if not raw:
        return fallback
    exts = []
    for item in raw.split(","):
        item = item.strip().lower()
        if item:
            exts.append(item if item.startswith(".") else f".{item}")
    return exts


_CONFIG_STORE: Optional[ConfigStore] = None


def get_config_store() -> ConfigStore:
    global _CONFIG_STORE
    if _CONFIG_STORE is None:
        _CONFIG_STORE = ConfigStore()
    return _CONFIG_STORE


__all__ = [
    "ConfigModel",
    "ConfigStore",
    "DEFAULT_COLORS",
    "get_config_store",
]
