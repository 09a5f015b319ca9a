"""Facade for the shared :class:`ConfigStore` singleton."""

from __future__ import annotations

from typing import Callable

from flightsync.core.config_store import ConfigModel, get_config_store


class Config:
    """Convenience facade: Config() returns the current ConfigModel."""

    def __new__(cls):
        return cls.current()

    @staticmethod
    def current() -> ConfigModel:
        return get_config_store().config

    @staticmethod
    def subscribe(callback: Callable[[ConfigModel], None]) -> None:
        get_config_store().config_changed.connect(callback)


__all__ = ["Config", "ConfigModel"]
