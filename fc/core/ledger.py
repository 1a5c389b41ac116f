"""Per-day ledger of focused stopwatch time.

The ledger is one JSON document mapping ``YYYY-MM-DD`` to a record holding at
least ``total_seconds``. It is meant to be read by people too, so it is always
written with sorted keys and any extra fields found in it are left alone.

A stopwatch session that runs across local midnight is booked in full against
the date on which it is stopped. Splitting it across both days is not
attempted.
"""

import json
import math
import os
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Callable
from fc.common.logger import log
from fc.common.setup import PATHS


LEDGER_PATH = PATHS.ledger_file
DATE_KEY_FORMAT = "%Y-%m-%d"
TOTAL_FIELD = "total_seconds"


# Calendar date of `now` as a ledger key. Naive datetimes are taken as local time already; aware ones are
# converted into `tz` (or the local zone when no tz is given).
def day_key(now: datetime, tz: tzinfo | None = None) -> str:
    if tz is not None:
        now = now.astimezone(tz) if now.tzinfo is not None else now.replace(tzinfo=tz)
    elif now.tzinfo is not None:
        now = now.astimezone()
    return now.strftime(DATE_KEY_FORMAT)


# Hand-edited totals like 3600.0 still count; anything that isn't a finite, non-negative number reads as 0.
def _record_total(record):
    if not isinstance(record, dict):
        return 0
    value = record.get(TOTAL_FIELD, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value) or value < 0:
        return 0
    return int(value)


class DailyAggregator:
    """Accumulates stopwatch seconds into today's ledger record.

    "Today" is recomputed from ``clock()`` on every read and write, so a
    long-running process rolls over at midnight without any timer of its own.
    """

    def __init__(self, path: Path | None = None, clock: Callable[[], datetime] = datetime.now,
                 tz: tzinfo | None = None):
        self.path = Path(path) if path is not None else LEDGER_PATH
        self._clock = clock
        self._tz = tz

    def today_key(self) -> str:
        return day_key(self._clock(), self._tz)

    #region === Ledger IO ===

    # Reads the whole ledger. Anything unreadable is treated as an empty ledger; a file that exists but
    # can't be parsed is moved aside first so the next write doesn't bury it.
    def load_ledger(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                ledger = json.load(f)
        except json.JSONDecodeError:
            log.warning(f"Ledger '{self.path}' is not valid JSON, treating it as empty.", exc_info=True)
            self._set_aside_corrupt()
            return {}
        except (OSError, UnicodeDecodeError):
            log.warning(f"Could not read ledger '{self.path}', treating it as empty.", exc_info=True)
            return {}

        if not isinstance(ledger, dict):
            log.warning(f"Ledger '{self.path}' does not hold an object, treating it as empty.")
            self._set_aside_corrupt()
            return {}
        return ledger

    def save_ledger(self, ledger: dict) -> bool:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(ledger, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError):
            log.warning(f"Failed to write ledger '{self.path}', today's total was not saved.", exc_info=True)
            return False
        return True

    def _set_aside_corrupt(self):
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        target = self.path.with_name(f"{self.path.stem}.corrupt-{stamp}{self.path.suffix}")
        try:
            os.replace(self.path, target)
            log.warning(f"Moved unreadable ledger to '{target}'")
        except OSError:
            log.warning(f"Could not move unreadable ledger '{self.path}' aside.", exc_info=True)

    #endregion === Ledger IO ===

    def add_seconds(self, seconds: int) -> int:
        """Adds ``seconds`` to today's record and returns the new total."""
        seconds = int(seconds)
        key = self.today_key()
        if seconds <= 0:
            log.debug(f"Nothing to add to ledger for {key} ({seconds}s)")
            return self.get_today_seconds()

        ledger = self.load_ledger()
        record = ledger.get(key)
        if not isinstance(record, dict):
            record = {}
        total = _record_total(record) + seconds
        record[TOTAL_FIELD] = total
        ledger[key] = record

        if self.save_ledger(ledger):
            log.info(f"Added {seconds}s to ledger for {key}, total now {total}s")
        return total

    def get_today_seconds(self) -> int:
        return _record_total(self.load_ledger().get(self.today_key()))

    # All valid (date, total) pairs, oldest first. Non-date keys are skipped, not removed.
    def history(self) -> list[tuple[str, int]]:
        rows = []
        for key, record in self.load_ledger().items():
            try:
                datetime.strptime(key, DATE_KEY_FORMAT)
            except (TypeError, ValueError):
                continue
            rows.append((key, _record_total(record)))
        rows.sort()
        return rows
