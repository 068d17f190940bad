"""Countdown state machine for Pomagotchi.

States
------
IDLE     Not counting — waiting for the user to start.
RUNNING  Counting down one second per tick.
PAUSED   Frozen mid-session; ``start()`` resumes from the same spot.

Transitions
-----------
IDLE → RUNNING              (start)
RUNNING → PAUSED            (pause)
PAUSED → RUNNING            (start)
RUNNING → IDLE              (timer reaches 0:00, complete_now)
PAUSED → IDLE               (complete_now, reset)

There is no way to go straight from IDLE to PAUSED.

The engine does no I/O.  Persistence is requested through the
``save_requested`` signal and time comes from an injected
:class:`~pomagotchi.timer.scheduler.TickScheduler`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from PyQt6.QtCore import QObject, pyqtSignal

from .scheduler import QtTickScheduler, TickScheduler


# ── enums ─────────────────────────────────────────────────────────────────


class TimerPhase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


# ── constants ─────────────────────────────────────────────────────────────

TICK_INTERVAL_MS = 1000
DEFAULT_MINUTES = 25
DEFAULT_SECONDS = 0


# ── state snapshots ───────────────────────────────────────────────────────


@dataclass
class SelectedDuration:
    """The duration the timer returns to after every terminal transition."""

    minutes: int = DEFAULT_MINUTES
    seconds: int = DEFAULT_SECONDS

    @property
    def total_seconds(self) -> int:
        return self.minutes * 60 + self.seconds


@dataclass
class TimerState:
    """Countdown values as persisted and displayed."""

    minutes: int = DEFAULT_MINUTES
    seconds: int = DEFAULT_SECONDS
    is_running: bool = False
    is_paused: bool = False
    initial_total_seconds: int = DEFAULT_MINUTES * 60 + DEFAULT_SECONDS

    @property
    def remaining_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    @property
    def phase(self) -> TimerPhase:
        if self.is_running:
            return TimerPhase.RUNNING
        if self.is_paused:
            return TimerPhase.PAUSED
        return TimerPhase.IDLE

    @classmethod
    def for_duration(cls, selection: SelectedDuration) -> "TimerState":
        return cls(
            minutes=selection.minutes,
            seconds=selection.seconds,
            initial_total_seconds=selection.total_seconds,
        )


def _validate_duration(minutes: int, seconds: int) -> None:
    if minutes < 0:
        raise ValueError(f"minutes must be >= 0, got {minutes}")
    if not 0 <= seconds <= 59:
        raise ValueError(f"seconds must be in [0, 59], got {seconds}")


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Pomodoro countdown with an injectable tick source.

    Signals
    -------
    tick(state: TimerState)
        Display update.  Emitted after every decrement and whenever the
        remaining time changes for another reason (reset, restore,
        set_duration).
    state_changed(phase: TimerPhase)
        Emitted on every phase transition.
    finished(natural: bool)
        The session ended — ``True`` when the countdown ran out,
        ``False`` for ``complete_now()``.  The engine has already halted
        but still holds the remaining time so XP can be computed.
    save_requested(state: TimerState, selection: SelectedDuration)
        Emitted on pause and reset; the owner forwards it to the
        persistence gateway.
    """

    tick = pyqtSignal(object)
    state_changed = pyqtSignal(object)
    finished = pyqtSignal(bool)
    save_requested = pyqtSignal(object, object)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        scheduler: TickScheduler | None = None,
    ) -> None:
        super().__init__(parent)
        self._selection = SelectedDuration()
        self._state = TimerState.for_duration(self._selection)
        self._scheduler: TickScheduler = (
            scheduler
            if scheduler is not None
            else QtTickScheduler(TICK_INTERVAL_MS, self)
        )

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def state(self) -> TimerState:
        """A copy of the current countdown values."""
        return replace(self._state)

    @property
    def selection(self) -> SelectedDuration:
        return replace(self._selection)

    @property
    def phase(self) -> TimerPhase:
        return self._state.phase

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def is_paused(self) -> bool:
        return self._state.is_paused

    @property
    def remaining_seconds(self) -> int:
        return self._state.remaining_seconds

    @property
    def initial_total_seconds(self) -> int:
        return self._state.initial_total_seconds

    @property
    def elapsed_seconds(self) -> int:
        """Seconds counted down so far in this session."""
        return self._state.initial_total_seconds - self._state.remaining_seconds

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def set_duration(self, minutes: int, seconds: int = 0) -> None:
        """Choose a new duration.  Ignored while running."""
        _validate_duration(minutes, seconds)
        if self._state.is_running:
            return
        self._selection = SelectedDuration(minutes, seconds)
        self._state.minutes = minutes
        self._state.seconds = seconds
        self._state.initial_total_seconds = self._selection.total_seconds
        self.tick.emit(self.state)

    def start(self) -> None:
        """Start from IDLE or resume from PAUSED."""
        if self._state.is_running:
            return
        self._scheduler.start(self._on_tick)
        self._state.is_running = True
        self._state.is_paused = False
        self.state_changed.emit(TimerPhase.RUNNING)

    def pause(self) -> None:
        if not self._state.is_running:
            return
        self._scheduler.stop()
        self._state.is_running = False
        self._state.is_paused = True
        self.state_changed.emit(TimerPhase.PAUSED)
        self.save_requested.emit(self.state, self.selection)

    def reset(self) -> None:
        """Return to the selected duration in IDLE."""
        self._scheduler.stop()
        self._state = TimerState.for_duration(self._selection)
        self.tick.emit(self.state)
        self.state_changed.emit(TimerPhase.IDLE)
        self.save_requested.emit(self.state, self.selection)

    def complete_now(self) -> None:
        """End the session early.  Only valid while running or paused."""
        if not (self._state.is_running or self._state.is_paused):
            return
        self.halt()
        self.finished.emit(False)

    def halt(self) -> None:
        """Stop ticking and clear both flags, keeping the remaining time."""
        self._scheduler.stop()
        self._state.is_running = False
        self._state.is_paused = False

    def restore(self, state: TimerState, selection: SelectedDuration) -> None:
        """Replace the countdown wholesale (startup load, undo).

        Never resumes ticking: a state captured mid-run comes back paused.
        """
        _validate_duration(selection.minutes, selection.seconds)
        self._scheduler.stop()
        self._selection = replace(selection)
        self._state = replace(
            state,
            is_running=False,
            is_paused=state.is_running or state.is_paused,
        )
        self.tick.emit(self.state)
        self.state_changed.emit(self._state.phase)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        if not self._state.is_running:
            return
        if self._state.seconds == 0:
            if self._state.minutes == 0:
                self.halt()
                self.finished.emit(True)
                return
            self._state.minutes -= 1
            self._state.seconds = 59
        else:
            self._state.seconds -= 1
        self.tick.emit(self.state)
