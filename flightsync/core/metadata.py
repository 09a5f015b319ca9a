"""
metadata.py

Reading a session folder's metadata.json and pre-parsed track files, and
writing snapshots back out.

metadata.json:
    {
        "timezone": "+02:00",
        "trailing": "00:10:00",
        "flights": ["alice.json", ...],
        "videos": [{"filename": "...", "pilot": "...", "timestamp": "...", ...}]
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from flight_core.errors import LoadError
from flight_core.model import TrackFix, TrackRecord, VideoRecord

log = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"


def read_metadata(folder: Path) -> Dict[str, Any]:
    """Load metadata.json from `folder`; a missing file means an empty session."""
    path = Path(folder) / METADATA_FILENAME
    if not path.exists():
        log.info(f"No {METADATA_FILENAME} in {folder}, starting with a blank session")
        return {}
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
    except (OSError, json.JSONDecodeError) as exc:
        log.warning(f"Couldn't load {path}: {exc}")
        return {}
    if not isinstance(data, dict):
        log.warning(f"Ignoring {path}: expected a JSON object")
        return {}
    return data


def video_record_from_metadata(entry: Mapping[str, Any]) -> VideoRecord:
    """Accepts flat latitude/longitude/altitude keys or a nested "position"."""
    if not isinstance(entry, Mapping) or not entry.get("filename"):
        raise LoadError(f"Video entry without a filename: {entry!r}")
    position = entry.get("position") or {}
    return VideoRecord(
        filename=str(entry["filename"]),
        pilot=str(entry.get("pilot") or ""),
        timestamp=entry.get("timestamp"),
        duration=entry.get("duration"),
        rate=entry.get("rate"),
        latitude=entry.get("latitude", position.get("latitude")),
        longitude=entry.get("longitude", position.get("longitude")),
        altitude=entry.get("altitude", position.get("altitude")),
    )


def read_track_json(path: Path) -> TrackRecord:
    """
    Read a pre-parsed flight track:
        {"pilot": "alice", "fixes": [{"timestamp": ..., "latitude": ...,
                                      "longitude": ..., "altitude": ...}]}
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
    except FileNotFoundError as exc:
        raise LoadError(f"Flight log file not found: {path.name}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise LoadError(f"Couldn't load flight log file {path.name}: {exc}") from exc

    try:
        fixes = [
            TrackFix(
                timestamp=fix["timestamp"],
                latitude=float(fix["latitude"]),
                longitude=float(fix["longitude"]),
                altitude=float(fix.get("altitude", 0.0)),
            )
            for fix in data.get("fixes", [])
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise LoadError(f"Malformed fix in {path.name}: {exc}") from exc
    return TrackRecord(pilot=str(data.get("pilot") or ""), fixes=fixes)


def write_snapshot(path: Path, snapshot: Mapping[str, Any]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fp:
        json.dump(snapshot, fp, indent=4)
        fp.write("\n")
    return path
