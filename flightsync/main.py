"""
main.py

Command-line entry point: loads a session folder, reports its timeline
and optionally exports the session snapshot.
"""

import argparse
import logging
import os
import sys
from collections import deque
from pathlib import Path
from typing import List, Optional

from flight_core.timeparse import format_clock, format_timestamp
from flightsync.core.config_backend import ConfigBackend
from flightsync.core.config_store import ConfigStore
from flightsync.core.engine import SyncEngine
from flightsync.core.metadata import write_snapshot
from flightsync.core.version import __version__

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class CappedFileHandler(logging.FileHandler):
    """A FileHandler that keeps only the last N lines of logs."""
    def __init__(self, filename, max_lines=200, mode="a", encoding="utf-8"):
        super().__init__(filename, mode=mode, encoding=encoding)
        self.max_lines = max_lines
        self._buffer = deque(maxlen=max_lines)
        self._pending = 0

    def emit(self, record):
        msg = self.format(record)
        self._buffer.append(msg + "\n")
        self._pending += 1
        # Rewrite every 10 lines, and straight away on errors
        if self._pending >= 10 or record.levelno >= logging.ERROR:
            self.rewrite()

    def rewrite(self):
        with open(self.baseFilename, "w", encoding=self.encoding) as f:
            f.writelines(self._buffer)
        self._pending = 0

    def close(self):
        if self._buffer:
            self.rewrite()
        super().close()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="flightsync",
        description="Load a folder of flight tracks and videos onto one timeline.",
    )
    parser.add_argument("folder", help="Session folder containing metadata.json")
    parser.add_argument(
        "--export",
        metavar="PATH",
        help="Write the session snapshot (flights, videos, timezone, trailing) as JSON",
    )
    parser.add_argument(
        "--log-file",
        default=os.getenv("FLIGHTSYNC_LOG_PATH"),
        help="Log file path. Defaults to flightsync_log.txt next to the executable.",
    )
    parser.add_argument(
        "--config",
        metavar="INI",
        help="Settings file to use instead of settings.ini next to the executable",
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def configure_logging(log_path: Optional[str], verbose: bool = False) -> str:
    if not log_path:
        base_dir = os.path.dirname(sys.argv[0])
        log_path = os.path.join(base_dir, "flightsync_log.txt")

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            CappedFileHandler(log_path, max_lines=200),
            logging.StreamHandler(sys.stdout),
        ],
    )
    return log_path


def describe(engine: SyncEngine) -> List[str]:
    """Human-readable summary of the loaded timeline, one line per entry."""
    session = engine.session
    lines = []
    intervals = session.intervals
    if not len(intervals):
        lines.append("Timeline is empty")
        return lines

    lines.append(
        f"Timeline {format_timestamp(intervals.start)} -> {format_timestamp(intervals.stop)} "
        f"({len(intervals)} segments)"
    )
    for pilot in session.pilots:
        if not len(pilot.flights) and not len(pilot.videos):
            continue
        lines.append(
            f"{pilot.display_name}: {len(pilot.flights)} flights, {len(pilot.videos)} videos"
        )
        for interval in list(pilot.flights) + list(pilot.videos):
            payload = interval.payload
            lines.append(
                f"  {payload.kind.value} {payload.name} "
                f"{format_clock(interval.start, session.timezone)}"
                f"-{format_clock(interval.stop, session.timezone)}"
            )
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    log_path = configure_logging(args.log_file, args.verbose)
    log.info(f"Starting flightsync {__version__} (log file {log_path})")

    folder = Path(args.folder)
    if not folder.is_dir():
        log.error(f"Folder not found: {folder}")
        return 1

    config = None
    if args.config:
        config = ConfigStore(ConfigBackend(args.config)).config

    engine = SyncEngine(config)
    engine.load_folder(folder)
    for line in describe(engine):
        log.info(line)

    if args.export:
        path = write_snapshot(Path(args.export), engine.session.snapshot())
        log.info(f"Snapshot written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
