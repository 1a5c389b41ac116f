import sys
from datetime import datetime, timedelta
from PySide6.QtCore import Qt, QProcess, QTimer
from PySide6.QtGui import QColor, QFont, QGuiApplication
from PySide6.QtWidgets import (
    QApplication,
    QBoxLayout,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QSystemTrayIcon,
    QVBoxLayout,
    QWidget,
)
from fc.common.logger import log
from fc.core.chime import ChimeScheduler
from fc.core.config import ConfigStore
from fc.core.focus_timer import FocusTimer
from fc.core.ledger import DailyAggregator
from fc.ui.dialogs.settings import SettingsDialog
from fc.ui.drag import DragController
from fc.ui.sound import ChimePlayer
from fc.ui.tray import ClockTrayIcon

_FONT_WEIGHTS = {
    "Light": QFont.Light,
    "Regular": QFont.Normal,
    "Medium": QFont.Medium,
    "Semibold": QFont.DemiBold,
    "Bold": QFont.Bold,
    "Heavy": QFont.ExtraBold,
}

_TEXT_ALIGNMENTS = {
    "Left": Qt.AlignLeft,
    "Center": Qt.AlignHCenter,
    "Right": Qt.AlignRight,
}


# ---------------------------------------------------------------------------
# Qt timer backend for the chime scheduler
# ---------------------------------------------------------------------------

# One QTimer per pending arm. The scheduler never holds more than one.
class QtTimerBackend:

    def __init__(self, parent):
        self.parent = parent

    def arm(self, delay_ms, callback):
        timer = QTimer(self.parent)
        timer.setSingleShot(True)
        timer.setTimerType(Qt.PreciseTimer)
        timer.timeout.connect(callback)
        timer.start(delay_ms)
        return timer

    def cancel(self, handle):
        handle.stop()
        handle.deleteLater()


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# The floating clock itself: time, optional date, and the focus timer beside them while a session is running.
class ClockWindow(QWidget):

    def __init__(self, config_store: ConfigStore, aggregator: DailyAggregator):
        super().__init__()
        self.setWindowTitle("Floating Clock")
        self.config_store = config_store
        self.aggregator = aggregator

        flags = Qt.FramelessWindowHint | Qt.Tool
        if config_store.get("always_on_top"):
            flags |= Qt.WindowStaysOnTopHint
        self.setWindowFlags(flags)
        self.setAttribute(Qt.WA_TranslucentBackground)

        # -- Core --
        self.chime_player = ChimePlayer(self)
        self.focus_timer = FocusTimer(config_store, aggregator, on_session_complete=self._on_phase_complete)
        self.chime = ChimeScheduler(config_store, QtTimerBackend(self), self.chime_player.play)

        # -- Labels --
        self.time_label = QLabel(self)
        self.date_label = QLabel(self)
        self.timer_label = QLabel("00:00", self)
        self.total_label = QLabel("", self)
        for lbl in (self.time_label, self.date_label, self.timer_label, self.total_label):
            lbl.setAttribute(Qt.WA_TransparentForMouseEvents)
        self.timer_label.setAlignment(Qt.AlignCenter)
        self.total_label.setAlignment(Qt.AlignCenter)

        self._clock_col = QVBoxLayout()
        self._clock_col.setSpacing(2)
        self._clock_col.addWidget(self.time_label)
        self._clock_col.addWidget(self.date_label)
        self._timer_col = QVBoxLayout()
        self._timer_col.setSpacing(2)
        self._timer_col.addWidget(self.timer_label)
        self._timer_col.addWidget(self.total_label)
        self._row = QHBoxLayout(self)
        self._row.setContentsMargins(6, 4, 6, 4)
        self._row.setSpacing(22)
        self._row.addLayout(self._clock_col)
        self._row.addLayout(self._timer_col)

        self._drag = DragController(self)
        self.tray = ClockTrayIcon(self, QApplication.instance()) if QSystemTrayIcon.isSystemTrayAvailable() else None
        if self.tray is not None:
            self.tray.show()

        self.apply_settings()

        # -- Tick timer (1 s) --
        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.timeout.connect(self._tick)
        self._timer.start(1000)

        # -- Midnight refresh --
        self._midnight_timer = QTimer(self)
        self._midnight_timer.setSingleShot(True)
        self._midnight_timer.timeout.connect(self._on_midnight)
        self._arm_midnight()

        self.chime.reschedule()

    # ------------------------------------------------------------------ #
    #  Settings / layout                                                   #
    # ------------------------------------------------------------------ #

    def _color(self, dimmed=False):
        color = QColor(self.config_store.get("text_color"))
        if not color.isValid():
            color = QColor("#ffffff")
        alpha = float(self.config_store.get("opacity"))
        if dimmed:
            alpha *= 0.5
        return f"rgba({color.red()}, {color.green()}, {color.blue()}, {int(alpha * 255)})"

    def apply_settings(self):
        cs = self.config_store
        family = cs.get("font")
        weight = _FONT_WEIGHTS.get(cs.get_string("font_weight"), QFont.Normal)
        main_font = QFont(family, cs.get_int("font_size"), weight)
        date_font = QFont(family, cs.get_int("date_font_size"), weight)
        self.time_label.setFont(main_font)
        self.timer_label.setFont(main_font)
        self.date_label.setFont(date_font)
        self.total_label.setFont(date_font)

        color = self._color()
        for lbl in (self.time_label, self.date_label, self.total_label):
            lbl.setStyleSheet(f"color: {color}; background: transparent;")

        alignment = _TEXT_ALIGNMENTS.get(cs.get_string("text_alignment"), Qt.AlignHCenter) | Qt.AlignVCenter
        self.time_label.setAlignment(alignment)
        self.date_label.setAlignment(alignment)
        self._clock_col.setSpacing(cs.get_int("line_spacing"))
        self._timer_col.setSpacing(cs.get_int("line_spacing"))
        self._row.setSpacing(cs.get_int("timer_gap"))

        # Clock column is always first in the row, flipping direction puts the timer on the left
        if cs.get_string("timer_side") == "Left":
            self._row.setDirection(QBoxLayout.RightToLeft)
        else:
            self._row.setDirection(QBoxLayout.LeftToRight)

        self.render()
        self._place_window()

    def _place_window(self):
        self.adjustSize()
        x, y = self.config_store.get("window_x"), self.config_store.get("window_y")
        if isinstance(x, int) and isinstance(y, int):
            self.move(x, y)
            return
        screen = QGuiApplication.primaryScreen()
        if screen is None:
            return
        area = screen.availableGeometry()
        self.move(area.right() - self.width(), area.top())

    def timer_visible(self):
        return not self.timer_label.isHidden()

    # ------------------------------------------------------------------ #
    #  Rendering                                                           #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _strftime(now, fmt, fallback):
        try:
            return now.strftime(fmt)
        except ValueError:
            return now.strftime(fallback)

    def render(self):
        cs = self.config_store
        now = datetime.now()
        self.time_label.setText(self._strftime(now, cs.get("time_format"), "%I:%M %p"))
        self.date_label.setText(self._strftime(now, cs.get("date_format"), "%a, %m-%d"))
        self.date_label.setVisible(bool(cs.get("show_date")))

        display = self.focus_timer.display()
        was_visible = not self.timer_label.isHidden()
        old_width = self.width()

        self.timer_label.setVisible(display.visible)
        self.total_label.setVisible(display.visible and bool(cs.get("show_date")))
        self.timer_label.setText(display.timer_text)
        self.total_label.setText(display.status_text)
        self.timer_label.setStyleSheet(f"color: {self._color(dimmed=not display.running)}; background: transparent;")

        if was_visible != display.visible:
            self.adjustSize()
            # Keep the clock where it was when the timer appears/disappears on its left
            if cs.get_string("timer_side") == "Left":
                self.move(self.x() - (self.width() - old_width), self.y())

    # ------------------------------------------------------------------ #
    #  Clicks                                                              #
    # ------------------------------------------------------------------ #

    def on_clock_clicked(self):
        if self.focus_timer.active:
            self.focus_timer.stop()
        elif self.config_store.get("click_to_show_timer"):
            self.focus_timer.start(self.config_store.timer_config())
        self.render()

    def on_timer_clicked(self):
        # No-op for pomodoro phases
        self.focus_timer.toggle()
        self.render()

    def open_settings(self):
        dialog = SettingsDialog(self, self.config_store, self.aggregator,
                                on_settings_changed=self.apply_settings,
                                on_chime_interval_changed=self.chime.reschedule,
                                on_restart=self.restart)
        dialog.exec()

    # Books any running stopwatch, launches a fresh copy of the app, then quits this one.
    def restart(self):
        self.close()
        if getattr(sys, "frozen", False):
            program, args = sys.executable, sys.argv[1:]
        else:
            program, args = sys.executable, ["-m", "fc", *sys.argv[1:]]
        # PySide6 hands back (started, pid)
        result = QProcess.startDetached(program, args)
        started = result[0] if isinstance(result, tuple) else result
        if not started:
            log.error(f"Failed to relaunch '{program}' with {args}")
            QMessageBox.warning(None, "Restart Failed", "Could not start a new Floating Clock, please relaunch it by hand.")
        else:
            log.info("Relaunched, quitting this instance")
        QApplication.quit()

    def mousePressEvent(self, event):
        if not self._drag.press(event):
            super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if not self._drag.move(event):
            super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if not self._drag.release(event):
            super().mouseReleaseEvent(event)

    # ------------------------------------------------------------------ #
    #  Timers                                                              #
    # ------------------------------------------------------------------ #

    def _tick(self):
        self.focus_timer.tick()
        self.chime.resync()
        self.render()

    def _on_phase_complete(self, finished_phase):
        log.debug(f"Pomodoro '{finished_phase}' finished, playing completion sound")
        self.chime_player.play(self.config_store.get_int("chime_volume"))

    def _arm_midnight(self):
        now = datetime.now()
        midnight = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        # Half a second late so strftime is definitely on the new day
        self._midnight_timer.start(int((midnight - now).total_seconds() * 1000) + 500)

    def _on_midnight(self):
        log.info("Local midnight passed, refreshing date display")
        if self.tray is not None:
            self.tray.refresh()
        self.render()
        self._arm_midnight()

    # ------------------------------------------------------------------ #
    #  Window close                                                        #
    # ------------------------------------------------------------------ #

    def closeEvent(self, event):
        self.chime.cancel()
        try:
            # A running stopwatch gets booked rather than lost
            self.focus_timer.stop()
        except (OSError, ValueError) as e:
            QMessageBox.warning(self, "Save Error", f"Failed to save today's focus time:\n{e}")
        event.accept()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    app.setApplicationName("Floating Clock")
    config_store = ConfigStore()
    aggregator = DailyAggregator()
    window = ClockWindow(config_store, aggregator)
    window.show()
    app.aboutToQuit.connect(window.close)
    sys.exit(app.exec())
