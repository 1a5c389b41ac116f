import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal
from fc.common.logger import log
from fc.common.setup import PATHS


_SCHEMA_VERSION = 1

#region === Defaults and Ranges ===

SETTINGS_PATH = PATHS.settings_file

STOPWATCH = "stopwatch"
POMODORO = "pomodoro"
TIMER_MODES = (STOPWATCH, POMODORO)

# Every key the store knows about, and what it falls back to when unset or malformed.
_SETTINGS_DEFAULTS = {
    # Focus timer
    "work_duration": 25,
    "break_duration": 5,
    "long_break_duration": 15,
    "sessions_before_long_break": 4,
    "timer_mode": STOPWATCH,
    # Chime
    "chime_interval": 0,
    "chime_volume": 50,
    # Host / appearance
    "click_to_show_timer": True,
    "timer_side": "Left",
    "show_date": True,
    "time_format": "%I:%M %p",
    "date_format": "%a, %m-%d",
    "font": "Trebuchet MS",
    "font_weight": "Regular",
    "font_size": 19,
    "date_font_size": 16,
    "text_alignment": "Center",
    "line_spacing": 2,
    "timer_gap": 22,
    "text_color": "#ffffff",
    "opacity": 0.75,
    "always_on_top": True,
    "window_x": None,
    "window_y": None,
}

# Inclusive (min, max) for integer settings. Values outside get clamped rather than rejected.
_INT_RANGES = {
    "work_duration": (1, 60),
    "break_duration": (1, 30),
    "long_break_duration": (5, 60),
    "sessions_before_long_break": (2, 8),
    "chime_interval": (0, 60),
    "chime_volume": (0, 100),
    "font_size": (10, 72),
    "date_font_size": (8, 48),
    "line_spacing": (0, 20),
    "timer_gap": (0, 60),
}

FONT_WEIGHTS = ("Light", "Regular", "Medium", "Semibold", "Bold", "Heavy")
TEXT_ALIGNMENTS = ("Left", "Center", "Right")

# Allowed values for the enumerated string settings.
_STRING_CHOICES = {
    "timer_mode": TIMER_MODES,
    "timer_side": ("Left", "Right"),
    "font_weight": FONT_WEIGHTS,
    "text_alignment": TEXT_ALIGNMENTS,
}

# Off stays off, anything between 1 and 4 is bumped to 5, everything else rounds down onto the 5 minute grid.
def snap_chime_interval(minutes):
    minutes = int(minutes)
    if minutes <= 0:
        return 0
    if minutes < 5:
        return 5
    return min(60, (minutes // 5) * 5)

def _clamp_int(key, value):
    if key == "chime_interval":
        return snap_chime_interval(value)
    low, high = _INT_RANGES.get(key, (None, None))
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return high
    return value

#endregion === Defaults and Ranges ===

#region === TimerConfig ===

# Immutable snapshot of everything the focus timer and chime need, taken fresh at each decision point.
@dataclass(frozen=True)
class TimerConfig:
    work_duration_min: int = 25
    break_duration_min: int = 5
    long_break_duration_min: int = 15
    sessions_before_long_break: int = 4
    chime_interval_min: int = 0
    chime_volume_pct: int = 50
    mode: Literal["stopwatch", "pomodoro"] = STOPWATCH

    @property
    def is_pomodoro(self):
        return self.mode == POMODORO

#endregion === TimerConfig ===

#region === ConfigStore ===

class ConfigStore:
    """Durable key -> value settings, backed by a single JSON file.

    One instance is created by the host and handed to everything that needs
    settings. Every setter writes the whole file straight away; the host is
    the only writer.
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else SETTINGS_PATH
        self._settings = self._load()

    # Loads settings from disk, filling in any missing keys from the defaults. Unreadable files fall back to a
    # fresh default dict.
    def _load(self):
        if not self.path.exists():
            log.info(f"No settings file at '{self.path}', starting from defaults.")
            return dict(_SETTINGS_DEFAULTS)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError, TypeError, ValueError):
            log.warning(f"Could not read settings from '{self.path}', falling back to defaults.", exc_info=True)
            return dict(_SETTINGS_DEFAULTS)

        if not isinstance(raw, dict):
            log.warning(f"Settings file '{self.path}' does not hold an object, falling back to defaults.")
            return dict(_SETTINGS_DEFAULTS)

        settings = raw.get("settings", raw) if "meta" in raw else raw
        if not isinstance(settings, dict):
            log.warning(f"Settings section in '{self.path}' is malformed, falling back to defaults.")
            return dict(_SETTINGS_DEFAULTS)

        defaulted_values = set()
        for key, default in _SETTINGS_DEFAULTS.items():
            if key not in settings:
                defaulted_values.add(key)
                settings[key] = default
        if defaulted_values:
            log.warning(f"Loaded settings from '{self.path}', but with missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{self.path}'.")
        return settings

    # Writes all settings to disk. Failures are logged and swallowed so a read-only disk never takes the clock down.
    def save(self):
        document = {
            "meta": {"schema_version": _SCHEMA_VERSION},
            "settings": self._settings,
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, sort_keys=True)
        except (OSError, TypeError, ValueError):
            log.warning(f"Failed to save settings to '{self.path}'.", exc_info=True)
            return False
        log.debug(f"Saved settings to '{self.path}'")
        return True

    # -- Typed accessors --

    def get_int(self, key) -> int:
        default = _SETTINGS_DEFAULTS.get(key, 0)
        value = self._settings.get(key, default)
        # bool is an int subclass, but True is never a valid duration. json.load also hands back NaN/Infinity.
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            log.warning(f"Setting '{key}' has malformed value {value!r}, using default {default!r}")
            return default
        return _clamp_int(key, int(value))

    def set_int(self, key, value):
        value = _clamp_int(key, int(value))
        self._settings[key] = value
        self.save()
        return value

    def get_string(self, key) -> str:
        default = _SETTINGS_DEFAULTS.get(key, "")
        value = self._settings.get(key, default)
        if not isinstance(value, str):
            log.warning(f"Setting '{key}' has malformed value {value!r}, using default {default!r}")
            return default
        choices = _STRING_CHOICES.get(key)
        if choices is not None and value not in choices:
            log.warning(f"Setting '{key}' has unknown value {value!r}, using default {default!r}")
            return default
        return value

    def set_string(self, key, value):
        choices = _STRING_CHOICES.get(key)
        if choices is not None and value not in choices:
            log.warning(f"Refusing to store unknown value {value!r} for '{key}'")
            return self.get_string(key)
        self._settings[key] = str(value)
        self.save()
        return value

    # Untyped access for the host's appearance settings (bools, floats, colors, positions).
    def get(self, key) -> Any:
        if key in _INT_RANGES:
            return self.get_int(key)
        if key in _STRING_CHOICES:
            return self.get_string(key)
        default = _SETTINGS_DEFAULTS.get(key)
        value = self._settings.get(key, default)
        if default is not None and value is not None and type(value) is not type(default):
            # ints stored where a float is expected are fine (opacity 1)
            if not (isinstance(default, float) and isinstance(value, int) and not isinstance(value, bool)):
                log.warning(f"Setting '{key}' has malformed value {value!r}, using default {default!r}")
                return default
        if isinstance(value, float) and not math.isfinite(value):
            log.warning(f"Setting '{key}' has malformed value {value!r}, using default {default!r}")
            return default
        return value

    def set(self, key, value):
        if key in _INT_RANGES:
            return self.set_int(key, value)
        if key in _STRING_CHOICES:
            return self.set_string(key, value)
        self._settings[key] = value
        self.save()
        return value

    def timer_config(self) -> TimerConfig:
        return TimerConfig(
            work_duration_min=self.get_int("work_duration"),
            break_duration_min=self.get_int("break_duration"),
            long_break_duration_min=self.get_int("long_break_duration"),
            sessions_before_long_break=self.get_int("sessions_before_long_break"),
            chime_interval_min=self.get_int("chime_interval"),
            chime_volume_pct=self.get_int("chime_volume"),
            mode=self.get_string("timer_mode"),
        )

    def as_dict(self):
        return {key: self.get(key) for key in _SETTINGS_DEFAULTS}

#endregion === ConfigStore ===
