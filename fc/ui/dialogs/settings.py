"""Settings dialog for the floating clock: tabbed sidebar layout."""

from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QColor, QDesktopServices, QFont
from PySide6.QtWidgets import (
    QColorDialog,
    QComboBox,
    QDialog,
    QDoubleSpinBox,
    QFontComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)
from fc.core.config import FONT_WEIGHTS, POMODORO, STOPWATCH, TEXT_ALIGNMENTS, snap_chime_interval
from fc.util import format_duration

_LABEL_FONT_FAMILY = "Trebuchet MS"

# Sidebar dialog opened by right-clicking the clock or from the tray. Writes straight into the ConfigStore on Apply,
# then tells the host what changed.
class SettingsDialog(QDialog):

    def __init__(self, parent, config_store, aggregator, on_settings_changed, on_chime_interval_changed,
                 on_restart=None):
        super().__init__(parent)
        self.setWindowTitle("Floating Clock Settings")
        self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint)

        self.config_store = config_store
        self.aggregator = aggregator
        self._on_settings_changed = on_settings_changed
        self._on_chime_interval_changed = on_chime_interval_changed
        self._on_restart = on_restart
        self._chosen_color = config_store.get("text_color")

        outer = QVBoxLayout(self)
        body = QHBoxLayout()

        self._tab_list = QListWidget()
        self._tab_list.setFixedWidth(130)
        self._tab_list.addItem("Timer")
        self._tab_list.addItem("Chime")
        self._tab_list.addItem("Appearance")
        self._tab_list.setCurrentRow(0)
        self._tab_list.currentRowChanged.connect(self._on_tab_changed)
        body.addWidget(self._tab_list)

        self._stack = QStackedWidget()
        self._stack.addWidget(self._build_timer_page())
        self._stack.addWidget(self._build_chime_page())
        self._stack.addWidget(self._build_appearance_page())
        body.addWidget(self._stack, 1)
        outer.addLayout(body, 1)

        btn_row = QHBoxLayout()
        if self._on_restart is not None:
            restart_btn = QPushButton("Restart")
            restart_btn.setToolTip("Relaunches the clock. Unapplied changes are discarded.")
            restart_btn.clicked.connect(self._restart)
            btn_row.addWidget(restart_btn)
        btn_row.addStretch()
        apply_btn = QPushButton("Apply")
        apply_btn.clicked.connect(self._apply)
        btn_row.addWidget(apply_btn)
        outer.addLayout(btn_row)

        self._on_mode_changed()

    def _on_tab_changed(self, index):
        self._stack.setCurrentIndex(index)

    def _restart(self):
        self.reject()
        self._on_restart()

    @staticmethod
    def _add_row(lay, text, widget, tooltip=""):
        row = QHBoxLayout()
        lbl = QLabel(text)
        lbl.setFont(QFont(_LABEL_FONT_FAMILY, 11, QFont.Bold))
        lbl.setToolTip(tooltip)
        widget.setMinimumWidth(180)
        widget.setToolTip(tooltip)
        row.addWidget(lbl)
        row.addWidget(widget)
        lay.addLayout(row)
        return lbl

    @staticmethod
    def _spin(low, high, value, suffix=""):
        box = QSpinBox()
        box.setRange(low, high)
        box.setValue(value)
        box.setSuffix(suffix)
        return box

    # ------------------------------------------------------------------ #
    #  Timer page                                                          #
    # ------------------------------------------------------------------ #

    def _build_timer_page(self):
        cs = self.config_store
        page = QWidget()
        lay = QVBoxLayout(page)
        lay.setSpacing(10)

        self._click_to_show = QComboBox()
        self._click_to_show.addItems(["On", "Off"])
        self._click_to_show.setCurrentText("On" if cs.get("click_to_show_timer") else "Off")
        self._add_row(lay, "Click To Show Timer:", self._click_to_show,
                      "Clicking the clock starts a focus timer; clicking it again stops it.")

        self._mode = QComboBox()
        self._mode.addItems(["Stopwatch", "Pomodoro"])
        self._mode.setCurrentText("Pomodoro" if cs.get_string("timer_mode") == POMODORO else "Stopwatch")
        self._mode.currentTextChanged.connect(self._on_mode_changed)
        self._add_row(lay, "Timer Mode:", self._mode,
                      "Stopwatch counts up and adds to today's total. Pomodoro counts down work and break phases and "
                      "can't be paused.")

        self._side = QComboBox()
        self._side.addItems(["Left", "Right"])
        self._side.setCurrentText(cs.get_string("timer_side"))
        self._add_row(lay, "Timer Side:", self._side)

        sep = QFrame()
        sep.setFrameShape(QFrame.HLine)
        sep.setFrameShadow(QFrame.Sunken)
        lay.addWidget(sep)

        self._work = self._spin(1, 60, cs.get_int("work_duration"), " min")
        self._break = self._spin(1, 30, cs.get_int("break_duration"), " min")
        self._long_break = self._spin(5, 60, cs.get_int("long_break_duration"), " min")
        self._sessions = self._spin(2, 8, cs.get_int("sessions_before_long_break"))
        self._pomodoro_rows = [
            (self._add_row(lay, "Work:", self._work), self._work),
            (self._add_row(lay, "Break:", self._break), self._break),
            (self._add_row(lay, "Long Break:", self._long_break), self._long_break),
            (self._add_row(lay, "Sessions Before Long Break:", self._sessions), self._sessions),
        ]

        sep = QFrame()
        sep.setFrameShape(QFrame.HLine)
        sep.setFrameShadow(QFrame.Sunken)
        lay.addWidget(sep)

        # Saved focus times
        self._history_lbl = QLabel(self._history_text())
        self._history_lbl.setTextInteractionFlags(Qt.TextSelectableByMouse)
        lay.addWidget(self._history_lbl)
        btn_row = QHBoxLayout()
        history_btn = QPushButton("Saved Focus Times")
        history_btn.clicked.connect(self._open_ledger)
        btn_row.addStretch()
        btn_row.addWidget(history_btn)
        lay.addLayout(btn_row)

        lay.addStretch()
        return page

    def _on_mode_changed(self, *_):
        pomodoro = self._mode.currentText() == "Pomodoro"
        for lbl, widget in self._pomodoro_rows:
            lbl.setVisible(pomodoro)
            widget.setVisible(pomodoro)

    def _history_text(self, days=7):
        rows = self.aggregator.history()[-days:]
        if not rows:
            return "No saved focus times yet."
        lines = [f"{key}   {format_duration(total)}" for key, total in reversed(rows)]
        return "Recent focus time:\n" + "\n".join(lines)

    def _open_ledger(self):
        path = self.aggregator.path
        if path.exists():
            QDesktopServices.openUrl(QUrl.fromLocalFile(str(path)))
        else:
            QMessageBox.information(self, "No Timer Data", "No saved times yet. Use the timer to start tracking!")

    # ------------------------------------------------------------------ #
    #  Chime page                                                          #
    # ------------------------------------------------------------------ #

    def _build_chime_page(self):
        cs = self.config_store
        page = QWidget()
        lay = QVBoxLayout(page)
        lay.setSpacing(10)

        self._chime_interval = self._spin(0, 60, cs.get_int("chime_interval"), " min")
        self._chime_interval.setSingleStep(5)
        self._chime_interval.setSpecialValueText("Off")
        self._add_row(lay, "Chime Every:", self._chime_interval,
                      "Rings on the clock's minute grid (e.g. 15 rings at :00, :15, :30, :45). 0 turns it off.")

        self._chime_volume = self._spin(0, 100, cs.get_int("chime_volume"), " %")
        self._add_row(lay, "Chime Volume:", self._chime_volume,
                      "Also used for the pomodoro phase-complete sound.")

        lay.addStretch()
        return page

    # ------------------------------------------------------------------ #
    #  Appearance page                                                     #
    # ------------------------------------------------------------------ #

    def _build_appearance_page(self):
        cs = self.config_store
        page = QWidget()
        lay = QVBoxLayout(page)
        lay.setSpacing(10)

        self._font = QFontComboBox()
        self._font.setCurrentFont(QFont(cs.get("font")))
        self._add_row(lay, "Font:", self._font)

        self._font_weight = QComboBox()
        self._font_weight.addItems(list(FONT_WEIGHTS))
        self._font_weight.setCurrentText(cs.get_string("font_weight"))
        self._add_row(lay, "Font Weight:", self._font_weight)

        self._font_size = self._spin(10, 72, cs.get_int("font_size"), " pt")
        self._add_row(lay, "Font Size:", self._font_size)

        self._date_font_size = self._spin(8, 48, cs.get_int("date_font_size"), " pt")
        self._add_row(lay, "Date Font Size:", self._date_font_size)

        self._line_spacing = self._spin(0, 20, cs.get_int("line_spacing"), " px")
        self._add_row(lay, "Line Spacing:", self._line_spacing, "Space between the time and the date.")

        self._alignment = QComboBox()
        self._alignment.addItems(list(TEXT_ALIGNMENTS))
        self._alignment.setCurrentText(cs.get_string("text_alignment"))
        self._add_row(lay, "Alignment:", self._alignment)

        self._timer_gap = self._spin(0, 60, cs.get_int("timer_gap"), " px")
        self._add_row(lay, "Timer Gap:", self._timer_gap, "Space between the clock and the focus timer.")

        self._color_btn = QPushButton(self._chosen_color)
        self._color_btn.clicked.connect(self._pick_color)
        self._add_row(lay, "Text Color:", self._color_btn)

        self._opacity = QDoubleSpinBox()
        self._opacity.setRange(0.1, 1.0)
        self._opacity.setSingleStep(0.05)
        self._opacity.setValue(float(cs.get("opacity")))
        self._add_row(lay, "Opacity:", self._opacity)

        self._show_date = QComboBox()
        self._show_date.addItems(["Yes", "No"])
        self._show_date.setCurrentText("Yes" if cs.get("show_date") else "No")
        self._add_row(lay, "Show Date:", self._show_date)

        format_tooltip = "strftime codes, e.g. %H:%M for 24 hour time or %I:%M %p for 12 hour time."
        self._time_format = QLineEdit(cs.get("time_format"))
        self._add_row(lay, "Time Format:", self._time_format, format_tooltip)
        self._date_format = QLineEdit(cs.get("date_format"))
        self._add_row(lay, "Date Format:", self._date_format, format_tooltip)

        reset_pos_btn = QPushButton("Reset Position")
        reset_pos_btn.clicked.connect(self._reset_position)
        btn_row = QHBoxLayout()
        btn_row.addStretch()
        btn_row.addWidget(reset_pos_btn)
        lay.addLayout(btn_row)

        lay.addStretch()
        return page

    def _pick_color(self):
        color = QColorDialog.getColor(QColor(self._chosen_color), self, "Text Color")
        if color.isValid():
            self._chosen_color = color.name()
            self._color_btn.setText(self._chosen_color)

    def _reset_position(self):
        self.config_store.set("window_x", None)
        self.config_store.set("window_y", None)
        self._on_settings_changed()

    # ------------------------------------------------------------------ #
    #  Apply                                                               #
    # ------------------------------------------------------------------ #

    def _apply(self):
        cs = self.config_store
        old_interval = cs.get_int("chime_interval")

        # Timer
        cs.set("click_to_show_timer", self._click_to_show.currentText() == "On")
        cs.set_string("timer_mode", POMODORO if self._mode.currentText() == "Pomodoro" else STOPWATCH)
        cs.set_string("timer_side", self._side.currentText())
        cs.set_int("work_duration", self._work.value())
        cs.set_int("break_duration", self._break.value())
        cs.set_int("long_break_duration", self._long_break.value())
        cs.set_int("sessions_before_long_break", self._sessions.value())
        # Chime
        interval = cs.set_int("chime_interval", snap_chime_interval(self._chime_interval.value()))
        self._chime_interval.setValue(interval)
        cs.set_int("chime_volume", self._chime_volume.value())
        # Appearance
        cs.set("font", self._font.currentFont().family())
        cs.set_string("font_weight", self._font_weight.currentText())
        cs.set_string("text_alignment", self._alignment.currentText())
        cs.set_int("line_spacing", self._line_spacing.value())
        cs.set_int("timer_gap", self._timer_gap.value())
        cs.set_int("font_size", self._font_size.value())
        cs.set_int("date_font_size", self._date_font_size.value())
        cs.set("text_color", self._chosen_color)
        cs.set("opacity", round(self._opacity.value(), 2))
        cs.set("show_date", self._show_date.currentText() == "Yes")
        cs.set("time_format", self._time_format.text() or "%I:%M %p")
        cs.set("date_format", self._date_format.text() or "%a, %m-%d")

        if interval != old_interval:
            self._on_chime_interval_changed()
        self._on_settings_changed()
        self.accept()
