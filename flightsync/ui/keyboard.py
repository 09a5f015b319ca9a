"""Keyboard commands for the flight playback view."""
from __future__ import annotations

import logging
log = logging.getLogger(__name__)

from PyQt5 import QtCore, QtGui

from flight_core.seek import Direction
from flightsync.core.engine import SyncEngine


class KeyboardController(QtCore.QObject):
    """
    Maps key presses onto engine commands.

    - PageUp / PageDown: previous / next pilot
    - Left / Right: step back / forward (Ctrl snaps to interval edges)
    - Space: play / pause
    - Delete: delete the active video, else the active flight
    - Ctrl+C: copy the session snapshot (emitted through `snapshot_copied`)

    Every handled key raises a manual tick so the view reflects the new
    state without waiting for the timer.
    """
    snapshot_copied = QtCore.pyqtSignal(str)

    def __init__(self, engine: SyncEngine):
        super().__init__()
        self._engine = engine

    def handle_key_press(self, event: QtGui.QKeyEvent) -> bool:
        return self.handle_key(event.key(), event.modifiers())

    def handle_key(self, key: int, modifiers=QtCore.Qt.NoModifier) -> bool:
        engine = self._engine
        ctrl = bool(int(modifiers) & int(QtCore.Qt.ControlModifier))

        if key == QtCore.Qt.Key_PageUp:
            engine.resolver.prev_pilot()
        elif key == QtCore.Qt.Key_PageDown:
            engine.resolver.next_pilot()
        elif key == QtCore.Qt.Key_Left:
            engine.seek(Direction.BACK, snap=ctrl)
        elif key == QtCore.Qt.Key_Right:
            engine.seek(Direction.FORWARD, snap=ctrl)
        elif key == QtCore.Qt.Key_Space:
            engine.clock.toggle_running()
        elif key == QtCore.Qt.Key_Delete:
            deleted = engine.delete_active()
            if deleted is None:
                log.debug("Delete pressed with nothing active")
        elif key == QtCore.Qt.Key_C and ctrl:
            self.snapshot_copied.emit(engine.session.snapshot_json())
        else:
            return False

        engine.clock.raise_tick()
        return True
