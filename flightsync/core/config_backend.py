"""Low-level INI parsing helpers for configuration management."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import configparser
import os
import sys

from flightsync.utils.ini_preserver import INLINE_COMMENT, update_ini_file

SETTINGS_FILENAME = "settings.ini"

# Sections understood by ConfigStore; anything else is kept but ignored.
KNOWN_SECTIONS = ("playback", "seek", "media", "tracking")


class ConfigBackend:
    """Encapsulates discovery, parsing, and persistence of settings.ini."""

    def __init__(self, ini_path: Optional[str] = None) -> None:
        base_dir = os.path.dirname(sys.argv[0])
        self._path = Path(ini_path or (Path(base_dir) / SETTINGS_FILENAME))

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Dict[str, Dict[str, str]]:
        # '#' stays part of the value so colours like #3498db survive
        parser = configparser.ConfigParser(inline_comment_prefixes=(INLINE_COMMENT,))
        parser.read(self._path, encoding="utf-8")
        data: Dict[str, Dict[str, str]] = {}
        for section in parser.sections():
            data[section] = dict(parser.items(section))
        return data

    def save(self, section_updates: Mapping[str, Mapping[str, Any]]) -> None:
        """Merge *section_updates* into the INI file, keeping other keys and comments."""

        if not section_updates:
            return
        update_ini_file(self._path, section_updates)
