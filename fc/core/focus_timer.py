from dataclasses import dataclass
from typing import Callable
from fc.common.logger import log
from fc.core.config import TimerConfig
from fc.util import format_countdown, format_duration

#region === Phases ===

IDLE = "idle"
STOPWATCH_RUNNING = "stopwatch_running"
STOPWATCH_PAUSED = "stopwatch_paused"
POMODORO_WORK = "pomodoro_work"
POMODORO_BREAK = "pomodoro_break"
POMODORO_LONG_BREAK = "pomodoro_long_break"

STOPWATCH_PHASES = (STOPWATCH_RUNNING, STOPWATCH_PAUSED)
POMODORO_PHASES = (POMODORO_WORK, POMODORO_BREAK, POMODORO_LONG_BREAK)
BREAK_PHASES = (POMODORO_BREAK, POMODORO_LONG_BREAK)

WORK_MARKER = "\U0001F345"   # tomato
BREAK_MARKER = "☕"      # hot beverage

#endregion === Phases ===

# Mutable state of the one focus session. Only `elapsed_seconds` means anything in stopwatch phases and only
# `remaining_seconds` in pomodoro phases; neither means anything while idle.
@dataclass
class FocusSession:
    phase: str = IDLE
    elapsed_seconds: int = 0
    remaining_seconds: int = 0
    completed_sessions: int = 0

    @property
    def active(self):
        return self.phase != IDLE

# What the host needs to render the timer, taken fresh on every render pass.
@dataclass(frozen=True)
class TimerDisplay:
    phase: str
    visible: bool
    running: bool
    timer_text: str
    status_text: str


class FocusTimer:
    """Stopwatch / Pomodoro state machine driven by a 1 Hz tick.

    Every operation is defined in every phase. Calls that make no sense for
    the current phase (toggling a Pomodoro, stopping while idle, starting
    twice) do nothing, because the host can't always stop a stale click from
    arriving.

    Pomodoro sessions cannot be paused: ``toggle()`` only ever affects the
    stopwatch. Only stopwatch time is added to the daily ledger.
    """

    def __init__(self, config_store, aggregator, on_session_complete: Callable[[str], None] | None = None):
        self.config_store = config_store
        self.aggregator = aggregator
        self.session = FocusSession()
        self._on_session_complete = on_session_complete
        self._today_seconds = 0
        self._today_key = None

    @property
    def phase(self):
        return self.session.phase

    @property
    def active(self):
        return self.session.active

    #region === Operations ===

    def start(self, config: TimerConfig | None = None):
        if self.session.active:
            log.debug(f"start() ignored, session already in phase '{self.session.phase}'")
            return self.session
        config = config or self.config_store.timer_config()

        if config.is_pomodoro:
            self.session = FocusSession(
                phase=POMODORO_WORK,
                remaining_seconds=config.work_duration_min * 60,
                completed_sessions=0,
            )
        else:
            self.session = FocusSession(phase=STOPWATCH_RUNNING, elapsed_seconds=0)
        self._load_today_total()
        log.info(f"Started focus session in phase '{self.session.phase}'")
        return self.session

    def toggle(self):
        # Pomodoro can't be paused, and there's nothing to pause while idle.
        if self.session.phase == STOPWATCH_RUNNING:
            self.session.phase = STOPWATCH_PAUSED
        elif self.session.phase == STOPWATCH_PAUSED:
            self.session.phase = STOPWATCH_RUNNING
        else:
            log.debug(f"toggle() ignored in phase '{self.session.phase}'")
            return self.session
        log.debug(f"Stopwatch toggled to '{self.session.phase}' at {self.session.elapsed_seconds}s")
        return self.session

    # Advances the session by one second. Returns True when a pomodoro phase finished on this tick, which is the
    # host's cue to play the completion sound.
    def tick(self) -> bool:
        phase = self.session.phase
        if phase == STOPWATCH_RUNNING:
            self.session.elapsed_seconds += 1
            return False
        if phase not in POMODORO_PHASES:
            return False

        self.session.remaining_seconds -= 1
        if self.session.remaining_seconds > 0:
            return False

        finished = phase
        self._complete_phase()
        if self._on_session_complete is not None:
            self._on_session_complete(finished)
        return True

    def stop(self) -> int:
        """Ends the session. Returns the seconds booked to today's ledger."""
        if not self.session.active:
            log.debug("stop() ignored, no active session")
            return 0

        booked = 0
        if self.session.phase in STOPWATCH_PHASES:
            booked = self.session.elapsed_seconds
            self._today_seconds = self.aggregator.add_seconds(booked)
            self._today_key = self.aggregator.today_key()
        log.info(f"Stopped focus session in phase '{self.session.phase}', booked {booked}s")
        self.session = FocusSession()
        return booked

    #endregion === Operations ===

    # Work finishing counts a completed session and picks the break length; a break finishing just goes back to
    # work. The new phase always starts from its full duration.
    def _complete_phase(self):
        config = self.config_store.timer_config()
        s = self.session
        if s.phase == POMODORO_WORK:
            s.completed_sessions += 1
            if s.completed_sessions >= config.sessions_before_long_break:
                s.phase = POMODORO_LONG_BREAK
                s.remaining_seconds = config.long_break_duration_min * 60
                s.completed_sessions = 0
            else:
                s.phase = POMODORO_BREAK
                s.remaining_seconds = config.break_duration_min * 60
        else:
            s.phase = POMODORO_WORK
            s.remaining_seconds = config.work_duration_min * 60
        log.info(f"Pomodoro phase complete, now '{s.phase}' for {s.remaining_seconds}s (completed {s.completed_sessions})")

    def _load_today_total(self):
        self._today_key = self.aggregator.today_key()
        self._today_seconds = self.aggregator.get_today_seconds()

    def display(self) -> TimerDisplay:
        s = self.session
        if s.phase in POMODORO_PHASES:
            marker = BREAK_MARKER if s.phase in BREAK_PHASES else WORK_MARKER
            return TimerDisplay(
                phase=s.phase,
                visible=True,
                running=True,
                timer_text=format_countdown(s.remaining_seconds),
                status_text=f"{marker} #{s.completed_sessions + 1}",
            )
        if s.phase in STOPWATCH_PHASES:
            # Past local midnight the status line follows the new day
            if self.aggregator.today_key() != self._today_key:
                self._load_today_total()
            return TimerDisplay(
                phase=s.phase,
                visible=True,
                running=s.phase == STOPWATCH_RUNNING,
                timer_text=format_duration(s.elapsed_seconds),
                status_text=format_duration(self._today_seconds),
            )
        return TimerDisplay(phase=IDLE, visible=False, running=False, timer_text="00:00", status_text="")
