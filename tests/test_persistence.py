"""Tests for the settings store and the daily focus-time ledger.

Covers: fc.core.config, fc.core.ledger, fc.util.misc
"""

import json
import os
import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

os.environ.setdefault("FLOATING_CLOCK_DATA", tempfile.mkdtemp(prefix="fc_test_data_"))


class FixedClock:

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


# ──────────────────────────────────────────────────────────────────────────
# config.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestConfigStore(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self._tmppath = Path(self.tmpdir)
        self.settings_path = self._tmppath / "settings.json"

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _store(self):
        from fc.core.config import ConfigStore
        return ConfigStore(self.settings_path)

    def _write(self, data):
        with open(self.settings_path, "w", encoding="utf-8") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)

    def test_fresh_start_uses_defaults(self):
        """No settings file → documented defaults, nothing written yet."""
        store = self._store()
        self.assertEqual(store.get_int("work_duration"), 25)
        self.assertEqual(store.get_int("break_duration"), 5)
        self.assertEqual(store.get_int("long_break_duration"), 15)
        self.assertEqual(store.get_int("sessions_before_long_break"), 4)
        self.assertEqual(store.get_int("chime_interval"), 0)
        self.assertEqual(store.get_int("chime_volume"), 50)
        self.assertEqual(store.get_string("timer_mode"), "stopwatch")
        self.assertFalse(self.settings_path.exists())

    def test_set_int_persists_across_instances(self):
        store = self._store()
        self.assertEqual(store.set_int("work_duration", 40), 40)
        reloaded = self._store()
        self.assertEqual(reloaded.get_int("work_duration"), 40)

    def test_saved_file_layout(self):
        self._store().set_int("chime_volume", 70)
        with open(self.settings_path, "r", encoding="utf-8") as f:
            document = json.load(f)
        self.assertEqual(document["meta"]["schema_version"], 1)
        self.assertEqual(document["settings"]["chime_volume"], 70)
        self.assertEqual(document["settings"]["work_duration"], 25)

    def test_set_int_clamps_to_range(self):
        store = self._store()
        self.assertEqual(store.set_int("work_duration", 500), 60)
        self.assertEqual(store.set_int("break_duration", 0), 1)
        self.assertEqual(store.set_int("sessions_before_long_break", 20), 8)
        self.assertEqual(store.set_int("chime_volume", -5), 0)

    def test_chime_interval_snaps_to_five_minute_grid(self):
        from fc.core.config import snap_chime_interval
        self.assertEqual(snap_chime_interval(0), 0)
        self.assertEqual(snap_chime_interval(-4), 0)
        self.assertEqual(snap_chime_interval(1), 5)
        self.assertEqual(snap_chime_interval(4), 5)
        self.assertEqual(snap_chime_interval(17), 15)
        self.assertEqual(snap_chime_interval(60), 60)
        self.assertEqual(snap_chime_interval(99), 60)
        store = self._store()
        self.assertEqual(store.set_int("chime_interval", 23), 20)

    def test_out_of_range_value_in_file_is_clamped_on_read(self):
        self._write({"meta": {"schema_version": 1}, "settings": {"work_duration": 999, "chime_interval": 7}})
        store = self._store()
        self.assertEqual(store.get_int("work_duration"), 60)
        self.assertEqual(store.get_int("chime_interval"), 5)

    def test_malformed_values_fall_back_to_defaults(self):
        self._write({"meta": {"schema_version": 1},
                     "settings": {"work_duration": "abc", "chime_volume": True, "timer_mode": "tabata"}})
        store = self._store()
        self.assertEqual(store.get_int("work_duration"), 25)
        self.assertEqual(store.get_int("chime_volume"), 50)
        self.assertEqual(store.get_string("timer_mode"), "stopwatch")

    def test_non_finite_numbers_fall_back_to_defaults(self):
        """NaN / Infinity are legal for json.load but never valid settings."""
        self._write('{"meta": {"schema_version": 1}, "settings": '
                    '{"work_duration": NaN, "chime_interval": Infinity, "chime_volume": -Infinity, "opacity": NaN}}')
        store = self._store()
        self.assertEqual(store.get_int("work_duration"), 25)
        self.assertEqual(store.get_int("chime_interval"), 0)
        self.assertEqual(store.get_int("chime_volume"), 50)
        self.assertEqual(store.get("opacity"), 0.75)
        self.assertEqual(store.timer_config().work_duration_min, 25)

    def test_appearance_settings_defaults_and_validation(self):
        store = self._store()
        self.assertEqual(store.get_string("font_weight"), "Regular")
        self.assertEqual(store.get_string("text_alignment"), "Center")
        self.assertEqual(store.get_int("line_spacing"), 2)
        self.assertEqual(store.get_int("timer_gap"), 22)
        self.assertEqual(store.set_string("font_weight", "Bold"), "Bold")
        self.assertEqual(store.set_string("text_alignment", "Diagonal"), "Center")
        self.assertEqual(store.set_int("line_spacing", 50), 20)
        self.assertEqual(store.set_int("timer_gap", -10), 0)
        reloaded = self._store()
        self.assertEqual(reloaded.get("font_weight"), "Bold")
        self.assertEqual(reloaded.get("line_spacing"), 20)

    def test_corrupt_file_falls_back_to_defaults(self):
        self._write("{not json at all")
        store = self._store()
        self.assertEqual(store.get_int("work_duration"), 25)
        self.assertEqual(store.get_string("timer_mode"), "stopwatch")

    def test_flat_settings_document_accepted(self):
        self._write({"work_duration": 30, "timer_mode": "pomodoro"})
        store = self._store()
        self.assertEqual(store.get_int("work_duration"), 30)
        self.assertEqual(store.get_string("timer_mode"), "pomodoro")
        self.assertEqual(store.get_int("break_duration"), 5)

    def test_set_string_refuses_unknown_choice(self):
        store = self._store()
        self.assertEqual(store.set_string("timer_mode", "tabata"), "stopwatch")
        self.assertEqual(store.get_string("timer_mode"), "stopwatch")
        self.assertEqual(store.set_string("timer_mode", "pomodoro"), "pomodoro")
        self.assertEqual(store.get_string("timer_mode"), "pomodoro")

    def test_timer_config_snapshot(self):
        store = self._store()
        store.set_string("timer_mode", "pomodoro")
        store.set_int("work_duration", 50)
        store.set_int("chime_interval", 30)
        config = store.timer_config()
        self.assertTrue(config.is_pomodoro)
        self.assertEqual(config.work_duration_min, 50)
        self.assertEqual(config.chime_interval_min, 30)
        # Snapshot is frozen, later writes don't leak into it
        store.set_int("work_duration", 10)
        self.assertEqual(config.work_duration_min, 50)

    def test_generic_get_type_checks_against_default(self):
        self._write({"settings": {"opacity": 1, "show_date": "yes", "window_x": 120}, "meta": {"schema_version": 1}})
        store = self._store()
        self.assertEqual(store.get("opacity"), 1)
        self.assertIs(store.get("show_date"), True)
        self.assertEqual(store.get("window_x"), 120)
        self.assertIsNone(store.get("window_y"))

    def test_unwritable_path_does_not_raise(self):
        """Settings path that is a directory → defaults on load, False on save."""
        from fc.core.config import ConfigStore
        store = ConfigStore(self._tmppath)
        self.assertEqual(store.get_int("work_duration"), 25)
        self.assertFalse(store.save())
        self.assertEqual(store.set_int("work_duration", 30), 30)


# ──────────────────────────────────────────────────────────────────────────
# ledger.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestDailyAggregator(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self._tmppath = Path(self.tmpdir)
        self.ledger_path = self._tmppath / "timer_data.json"
        self.clock = FixedClock(datetime(2026, 3, 14, 15, 30, 0))

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _aggregator(self, **kwargs):
        from fc.core.ledger import DailyAggregator
        return DailyAggregator(self.ledger_path, clock=self.clock, **kwargs)

    def _read(self):
        with open(self.ledger_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, data):
        with open(self.ledger_path, "w", encoding="utf-8") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)

    def test_empty_ledger(self):
        agg = self._aggregator()
        self.assertEqual(agg.get_today_seconds(), 0)
        self.assertEqual(agg.load_ledger(), {})
        self.assertEqual(agg.history(), [])

    def test_add_seconds_accumulates(self):
        agg = self._aggregator()
        self.assertEqual(agg.add_seconds(30), 30)
        self.assertEqual(agg.add_seconds(45), 75)
        self.assertEqual(agg.get_today_seconds(), 75)
        self.assertEqual(self._read(), {"2026-03-14": {"total_seconds": 75}})
        self.assertFalse(self.ledger_path.with_name("timer_data.json.tmp").exists())

    def test_add_nothing_writes_nothing(self):
        agg = self._aggregator()
        self.assertEqual(agg.add_seconds(0), 0)
        self.assertEqual(agg.add_seconds(-12), 0)
        self.assertFalse(self.ledger_path.exists())

    def test_extra_fields_and_other_days_preserved(self):
        self._write({
            "2026-03-14": {"total_seconds": 5, "label": "deep work"},
            "2026-03-13": {"total_seconds": 10, "note": "x"},
            "settings_backup": {"anything": True},
        })
        agg = self._aggregator()
        self.assertEqual(agg.add_seconds(10), 15)
        ledger = self._read()
        self.assertEqual(ledger["2026-03-14"], {"total_seconds": 15, "label": "deep work"})
        self.assertEqual(ledger["2026-03-13"], {"total_seconds": 10, "note": "x"})
        self.assertEqual(ledger["settings_backup"], {"anything": True})

    def test_written_with_sorted_keys(self):
        self._write({"2026-03-20": {"total_seconds": 1}, "2026-01-02": {"total_seconds": 2}})
        self._aggregator().add_seconds(3)
        with open(self.ledger_path, "r", encoding="utf-8") as f:
            text = f.read()
        self.assertEqual(text, json.dumps(json.loads(text), indent=2, sort_keys=True))
        self.assertLess(text.index("2026-01-02"), text.index("2026-03-14"))
        self.assertLess(text.index("2026-03-14"), text.index("2026-03-20"))

    def test_rollover_at_midnight(self):
        self.clock.now = datetime(2026, 3, 14, 23, 59, 59)
        agg = self._aggregator()
        agg.add_seconds(5)
        self.clock.now = datetime(2026, 3, 15, 0, 0, 1)
        self.assertEqual(agg.today_key(), "2026-03-15")
        self.assertEqual(agg.get_today_seconds(), 0)
        agg.add_seconds(7)
        self.assertEqual(self._read(), {
            "2026-03-14": {"total_seconds": 5},
            "2026-03-15": {"total_seconds": 7},
        })

    def test_corrupt_ledger_is_set_aside(self):
        self._write("{oops")
        agg = self._aggregator()
        self.assertEqual(agg.get_today_seconds(), 0)
        self.assertFalse(self.ledger_path.exists())

        corrupt = list(self._tmppath.glob("timer_data.corrupt-*.json"))
        self.assertEqual(len(corrupt), 1)
        with open(corrupt[0], "r", encoding="utf-8") as f:
            self.assertEqual(f.read(), "{oops")

        self.assertEqual(agg.add_seconds(10), 10)
        self.assertEqual(self._read(), {"2026-03-14": {"total_seconds": 10}})

    def test_non_object_ledger_is_set_aside(self):
        self._write([1, 2, 3])
        agg = self._aggregator()
        self.assertEqual(agg.load_ledger(), {})
        self.assertEqual(len(list(self._tmppath.glob("timer_data.corrupt-*.json"))), 1)

    def test_bad_total_treated_as_zero(self):
        self._write({"2026-03-14": {"total_seconds": "lots", "label": "kept"}})
        agg = self._aggregator()
        self.assertEqual(agg.get_today_seconds(), 0)
        self.assertEqual(agg.add_seconds(5), 5)
        self.assertEqual(self._read()["2026-03-14"], {"total_seconds": 5, "label": "kept"})

    def test_float_total_keeps_history(self):
        """Hand-edited 3600.0 is still an hour, adding to it must not wipe it."""
        self._write({"2026-03-14": {"total_seconds": 3600.0}})
        agg = self._aggregator()
        self.assertEqual(agg.get_today_seconds(), 3600)
        self.assertEqual(agg.add_seconds(10), 3610)
        self.assertEqual(self._read()["2026-03-14"], {"total_seconds": 3610})

    def test_non_finite_or_negative_total_treated_as_zero(self):
        with open(self.ledger_path, "w", encoding="utf-8") as f:
            f.write('{"2026-03-13": {"total_seconds": -40}, "2026-03-14": {"total_seconds": Infinity}}')
        agg = self._aggregator()
        self.assertEqual(agg.get_today_seconds(), 0)
        self.assertEqual(agg.history(), [("2026-03-13", 0), ("2026-03-14", 0)])

    def test_day_key_timezones(self):
        from fc.core.ledger import day_key
        plus_two = timezone(timedelta(hours=2))
        late_utc = datetime(2026, 3, 14, 23, 30, tzinfo=timezone.utc)
        self.assertEqual(day_key(late_utc, plus_two), "2026-03-15")
        self.assertEqual(day_key(late_utc, timezone.utc), "2026-03-14")
        self.assertEqual(day_key(datetime(2026, 3, 14, 23, 30), plus_two), "2026-03-14")

    def test_aggregator_uses_configured_zone(self):
        self.clock.now = datetime(2026, 3, 14, 20, 0, tzinfo=timezone.utc)
        agg = self._aggregator(tz=timezone(timedelta(hours=9)))
        agg.add_seconds(60)
        self.assertEqual(self._read(), {"2026-03-15": {"total_seconds": 60}})

    def test_history_sorted_and_skips_foreign_keys(self):
        self._write({
            "2026-03-12": {"total_seconds": 100},
            "notes": {"total_seconds": 5},
            "2026-03-10": {"total_seconds": 40},
            "2026-03-11": "broken",
        })
        agg = self._aggregator()
        self.assertEqual(agg.history(), [("2026-03-10", 40), ("2026-03-11", 0), ("2026-03-12", 100)])


# ──────────────────────────────────────────────────────────────────────────
# misc.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestFormatting(unittest.TestCase):

    def test_format_duration(self):
        from fc.util import format_duration
        self.assertEqual(format_duration(0), "00:00")
        self.assertEqual(format_duration(59), "00:59")
        self.assertEqual(format_duration(3599), "59:59")
        self.assertEqual(format_duration(3600), "1:00:00")
        self.assertEqual(format_duration(-3), "00:00")

    def test_format_countdown_never_shows_hours(self):
        from fc.util import format_countdown
        self.assertEqual(format_countdown(1500), "25:00")
        self.assertEqual(format_countdown(90 * 60), "90:00")
        self.assertEqual(format_countdown(1), "00:01")


if __name__ == "__main__":
    unittest.main()
