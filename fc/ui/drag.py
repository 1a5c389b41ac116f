"""Shift-drag window moving and click routing for the floating clock."""

from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import Qt, QPoint

if TYPE_CHECKING:
    from fc.ui.app import ClockWindow


class DragController:
    """Moves the frameless window while Shift is held, and turns plain releases into clicks.

    Holds a reference to the host ClockWindow for access to its labels, the
    config store and the click handlers.
    """

    def __init__(self, host: ClockWindow):
        self.host = host
        self.press_global = None     # global mouse pos at press, only while shift-dragging
        self.press_origin = None     # window top-left at press

    @property
    def active(self):
        return self.press_global is not None

    def press(self, event):
        if event.button() != Qt.LeftButton:
            return False
        if event.modifiers() & Qt.ShiftModifier:
            self.press_global = event.globalPosition().toPoint()
            self.press_origin = self.host.pos()
            return True
        return False

    def move(self, event):
        if not self.active:
            return False
        delta = event.globalPosition().toPoint() - self.press_global
        self.host.move(self.press_origin + delta)
        return True

    def release(self, event):
        h = self.host
        if event.button() == Qt.RightButton:
            h.open_settings()
            return True
        if event.button() != Qt.LeftButton:
            return False

        if self.active:
            self.press_global = None
            self.press_origin = None
            pos = h.pos()
            h.config_store.set("window_x", pos.x())
            h.config_store.set("window_y", pos.y())
            return True

        self._route_click(event.position().toPoint())
        return True

    # Timer label toggles, anything else on the clock starts/stops the session. The status label does nothing.
    def _route_click(self, local_pos: QPoint):
        h = self.host
        if h.timer_visible():
            if h.timer_label.geometry().contains(local_pos):
                h.on_timer_clicked()
                return
            if h.total_label.geometry().contains(local_pos):
                return
        h.on_clock_clicked()
