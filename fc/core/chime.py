from datetime import datetime, timedelta
from typing import Callable
from fc.common.logger import log

# If the freshly computed boundary and the armed one disagree by more than this, the wall clock has moved
# under us (sleep/wake, manual change) and the arm is redone.
RESYNC_TOLERANCE_SECONDS = 2


# Seconds from `now` until the next wall-clock instant whose minute is on the interval grid and whose second is 0.
# The grid restarts at the top of every hour, so a 25 minute chime rings at :00, :25 and :50.
def seconds_until_next_chime(interval_min, now: datetime) -> int:
    if interval_min <= 0:
        raise ValueError("Chime interval must be positive to compute a delay")
    minute, second = now.minute, now.second

    base = (minute // interval_min) * interval_min
    next_minute = base + interval_min
    if next_minute >= 60:
        # Boundary is the top of the next hour
        delay = (60 - minute - 1) * 60 + (60 - second)
    else:
        delay = (next_minute - minute) * 60 - second

    if delay <= 0:
        delay += interval_min * 60
    return delay


# Wall-clock instant (whole second) of the next chime after `now`.
def next_chime_time(interval_min, now: datetime) -> datetime:
    delay = seconds_until_next_chime(interval_min, now)
    return now.replace(microsecond=0) + timedelta(seconds=delay)


class ChimeScheduler:
    """Keeps exactly one one-shot armed for the next aligned chime.

    ``backend`` provides ``arm(delay_ms, callback) -> handle`` and
    ``cancel(handle)``; the Qt host hands in a QTimer based one. Volume is
    read from ``config_store`` when the chime fires, never when it is armed.
    """

    def __init__(self, config_store, backend, play_chime: Callable[[int], None],
                 clock: Callable[[], datetime] = datetime.now):
        self.config_store = config_store
        self.backend = backend
        self._play_chime = play_chime
        self._clock = clock
        self._handle = None
        self.next_fire_at: datetime | None = None
        self._last_fired_for: datetime | None = None

    @property
    def armed(self):
        return self._handle is not None

    def cancel(self):
        if self._handle is not None:
            self.backend.cancel(self._handle)
            log.debug(f"Cancelled chime armed for {self.next_fire_at}")
        self._handle = None
        self.next_fire_at = None

    # `not_before` keeps a one-shot that landed a hair early from picking the boundary it was armed for again.
    def reschedule(self, not_before: datetime | None = None):
        self.cancel()
        interval = self.config_store.get_int("chime_interval")
        if interval <= 0:
            log.debug("Chime disabled, nothing armed")
            return None

        now = self._clock()
        fire_at = next_chime_time(interval, max(now, not_before) if not_before is not None else now)
        # Sub-second part of `now` is taken off so the callback lands on :00, not :00.7
        delay_ms = max(1, int((fire_at - now).total_seconds() * 1000))
        self._handle = self.backend.arm(delay_ms, self._fire)
        self.next_fire_at = fire_at
        log.debug(f"Armed {interval} min chime for {fire_at:%H:%M:%S} ({delay_ms} ms)")
        return fire_at

    # Checks the armed instant against the current wall clock, re-arming if they no longer agree.
    def resync(self):
        interval = self.config_store.get_int("chime_interval")
        if interval <= 0:
            if self.armed:
                self.cancel()
            return False
        if self.next_fire_at is None:
            self.reschedule()
            return True

        now = self._clock()
        overdue = (now - self.next_fire_at).total_seconds()
        if 0 <= overdue <= RESYNC_TOLERANCE_SECONDS:
            # Boundary just passed and the one-shot is about to run
            return False

        reference = now
        if self._last_fired_for is not None and 0 < (self._last_fired_for - now).total_seconds() <= RESYNC_TOLERANCE_SECONDS:
            # Last one-shot ran just ahead of its boundary, which is already rung
            reference = self._last_fired_for
        expected = next_chime_time(interval, reference)
        drift = abs((expected - self.next_fire_at).total_seconds())
        if drift > RESYNC_TOLERANCE_SECONDS:
            log.info(f"Wall clock moved, chime for {self.next_fire_at} re-armed for {expected}")
            self.reschedule()
            return True
        return False

    def _fire(self):
        armed_for = self.next_fire_at
        self._last_fired_for = armed_for
        self._handle = None
        self.next_fire_at = None
        volume = self.config_store.get_int("chime_volume")
        log.debug(f"Chime firing at volume {volume}")
        try:
            self._play_chime(volume)
        finally:
            self.reschedule(not_before=armed_for)
