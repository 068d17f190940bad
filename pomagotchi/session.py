"""The focus session — ties the timer, the creature and persistence together.

``FocusSession`` is the only object the presentation layer talks to.  It
owns one :class:`TimerEngine` and one :class:`ProgressionEngine`, forwards
their display updates as its own signals, and pushes every change to a
:class:`PersistenceGateway`.

Commands
--------
``set_duration``, ``start``, ``pause``, ``reset``, ``complete_now`` are
plain methods.  ``load``, ``reset_all_data`` and ``undo_data_reset`` are
coroutines.  Saves triggered by the engines are fire-and-forget tasks on
the running event loop; ``drain()`` waits for them.

Consistency
-----------
Local state is updated first and never rolled back.  When a gateway call
fails the error is logged and the next successful call catches the
backend up.  Overlapping calls are not coalesced: whichever progress
response resolves last is what gets displayed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Coroutine

from PyQt6.QtCore import QObject, pyqtSignal

from .gamification.creature import (
    CreatureState, EvolutionResult, ProgressionEngine, Stage,
)
from .gateway.base import AggregateProgress, GameState, PersistenceGateway
from .notifications import Notification, NotificationKind
from .settings import Settings
from .timer.engine import (
    TICK_INTERVAL_MS, SelectedDuration, TimerEngine, TimerPhase, TimerState,
)
from .timer.scheduler import AsyncioTickScheduler, TickScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataBackup:
    """Everything needed to undo one ``reset_all_data``."""

    creature: CreatureState
    timer: TimerState
    selection: SelectedDuration
    progress: AggregateProgress
    captured_at: float

    def to_game_state(self) -> GameState:
        return GameState(
            creature=replace(self.creature),
            timer=replace(self.timer),
            selection=replace(self.selection),
            progress=replace(self.progress),
        )


class FocusSession(QObject):
    """Session orchestrator and reset/undo coordinator.

    Signals
    -------
    timer_updated(state: TimerState)
    phase_changed(phase: TimerPhase)
    creature_updated(state: CreatureState)
    progress_updated(progress: AggregateProgress)
    notified(notification: Notification)
    session_completed(data: dict)
        Keys: ``natural``, ``xp_gained``, ``duration_seconds``,
        ``evolved``, ``level``.
    """

    timer_updated = pyqtSignal(object)
    phase_changed = pyqtSignal(object)
    creature_updated = pyqtSignal(object)
    progress_updated = pyqtSignal(object)
    notified = pyqtSignal(object)
    session_completed = pyqtSignal(object)

    def __init__(
        self,
        gateway: PersistenceGateway,
        parent: QObject | None = None,
        *,
        settings: Settings | None = None,
        scheduler: TickScheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(parent)
        self._gateway = gateway
        self._settings = settings or Settings()
        self._clock = clock

        if scheduler is None:
            scheduler = AsyncioTickScheduler(TICK_INTERVAL_MS)
        self._timer = TimerEngine(self, scheduler=scheduler)
        self._progression = ProgressionEngine(self)
        self._progress = AggregateProgress()
        self._backup: DataBackup | None = None
        self._pending: set[asyncio.Task] = set()

        # ── wiring ────────────────────────────────────────────────────
        self._timer.tick.connect(self.timer_updated)
        self._timer.state_changed.connect(self.phase_changed)
        self._timer.finished.connect(self.complete_session)
        self._timer.save_requested.connect(self._save_timer)
        self._progression.creature_changed.connect(self.creature_updated)
        self._progression.evolved.connect(self._on_evolved)
        self._progression.save_requested.connect(self._save_creature)

    # ══════════════════════════════════════════════════════════════════
    #  READ-ONLY SNAPSHOTS
    # ══════════════════════════════════════════════════════════════════

    @property
    def timer(self) -> TimerState:
        return self._timer.state

    @property
    def selection(self) -> SelectedDuration:
        return self._timer.selection

    @property
    def phase(self) -> TimerPhase:
        return self._timer.phase

    @property
    def creature(self) -> CreatureState:
        return self._progression.creature

    @property
    def progress(self) -> AggregateProgress:
        return replace(self._progress)

    @property
    def has_backup(self) -> bool:
        return self._backup is not None

    @property
    def pending_calls(self) -> int:
        return len(self._pending)

    # ══════════════════════════════════════════════════════════════════
    #  TIMER COMMANDS
    # ══════════════════════════════════════════════════════════════════

    def set_duration(self, minutes: int, seconds: int = 0) -> None:
        self._timer.set_duration(minutes, seconds)

    def start(self) -> None:
        self._timer.start()

    def pause(self) -> None:
        self._timer.pause()

    def reset(self) -> None:
        self._timer.reset()

    def complete_now(self) -> None:
        self._timer.complete_now()

    # ══════════════════════════════════════════════════════════════════
    #  SESSION LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def complete_session(self, natural: bool) -> EvolutionResult:
        """Award XP for the session that just ended and reset the timer.

        Connected to ``TimerEngine.finished``; the gateway round-trip
        runs in the background.
        """
        self._timer.halt()
        xp = self._progression.calculate_xp(
            natural,
            self._timer.initial_total_seconds,
            self._timer.remaining_seconds,
        )
        duration_seconds = max(0, self._timer.elapsed_seconds)

        result = self._progression.apply_xp(xp)
        if not result.evolved:
            # Evolutions already asked for a save via save_requested.
            self._save_creature(self._progression.creature)

        self._spawn(self._complete_on_backend(duration_seconds, xp))

        self._timer.reset()

        completion = "completed" if natural else "completed early"
        self._notify(
            f"Pomodoro {completion}! Your creature gained {xp} XP!",
            NotificationKind.XP,
        )
        self.session_completed.emit({
            "natural": natural,
            "xp_gained": xp,
            "duration_seconds": duration_seconds,
            "evolved": result.evolved,
            "level": result.level,
        })
        return result

    async def load(self) -> bool:
        """Pull the stored game into memory.  Returns ``False`` on failure.

        A timer that is already running keeps its countdown.
        """
        try:
            state = await self._gateway.get_full_game_state()
            if state is not None:
                self._progression.restore(state.creature)
                if not self._timer.is_running:
                    self._timer.restore(state.timer, state.selection)
        except Exception:
            logger.exception("Failed to load game state")
            self._progression.restore(CreatureState())
            if not self._timer.is_running:
                self._timer.restore(TimerState(), SelectedDuration())
            self._set_progress(AggregateProgress())
            return False

        if state is None:
            logger.info("No saved game found, starting fresh")
            self._set_progress(AggregateProgress())
            return True

        self._set_progress(state.progress)
        logger.info(
            "Loaded game state: level %s, %s pomodoros",
            state.creature.level, state.progress.total_pomodoros_completed,
        )

        if state.progress.total_pomodoros_completed > 0:
            streak = state.progress.current_streak
            streak_text = f" You're on a {streak} day streak!" if streak > 1 else ""
            self._notify(f"Welcome back!{streak_text}", NotificationKind.SUCCESS)
        return True

    # ══════════════════════════════════════════════════════════════════
    #  RESET / UNDO
    # ══════════════════════════════════════════════════════════════════

    async def reset_all_data(self) -> bool:
        """Wipe all game data, keeping one in-memory backup for undo."""
        try:
            progress = await self._gateway.get_game_progress()
        except Exception:
            logger.exception("Failed to get game progress, backing up last known")
            progress = replace(self._progress)

        timer = self._timer.state
        backup = DataBackup(
            creature=self._progression.creature,
            timer=replace(
                timer,
                is_running=False,
                is_paused=timer.is_running or timer.is_paused,
            ),
            selection=self._timer.selection,
            progress=progress,
            captured_at=self._clock(),
        )
        # A reset attempt always supersedes the previous backup.
        self._backup = None

        try:
            await self._gateway.reset_game_data()
        except Exception:
            logger.exception("Failed to reset data")
            self._notify("Failed to reset data", NotificationKind.ERROR)
            return False

        self._backup = backup
        self._progression.restore(CreatureState())
        self._timer.restore(TimerState(), SelectedDuration())
        self._set_progress(AggregateProgress())

        self._notify(
            "All data has been reset!",
            NotificationKind.WARNING,
            duration_ms=self._settings.duration_ms("action"),
            action_label="Undo",
            action=self.undo_data_reset,
        )
        return True

    async def undo_data_reset(self) -> bool:
        """Restore the backup taken by the last ``reset_all_data``.

        Single use: the slot is emptied before the gateway call so a
        second undo (even an overlapping one) finds nothing to restore.
        """
        backup, self._backup = self._backup, None
        if backup is not None and self._backup_expired(backup):
            logger.info("Undo window elapsed, discarding backup")
            backup = None
        if backup is None:
            self._notify("No backup available to restore", NotificationKind.ERROR)
            return False

        try:
            await self._gateway.save_full_game_state(backup.to_game_state())
        except Exception:
            logger.exception("Failed to restore data")
            if self._backup is None:
                self._backup = backup  # let the user try again
            self._notify("Failed to restore data", NotificationKind.ERROR)
            return False

        self._progression.restore(backup.creature)
        self._timer.restore(backup.timer, backup.selection)
        self._set_progress(backup.progress)
        self._notify("Data has been restored!", NotificationKind.SUCCESS)
        return True

    def _backup_expired(self, backup: DataBackup) -> bool:
        return self._clock() - backup.captured_at > self._settings.undo_window_seconds

    # ══════════════════════════════════════════════════════════════════
    #  BACKGROUND GATEWAY CALLS
    # ══════════════════════════════════════════════════════════════════

    async def drain(self) -> None:
        """Wait until every fire-and-forget gateway call has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task | None:
        """Schedule a gateway call on the running loop.

        Hosts driven by a Qt event loop have no running asyncio loop; the
        call then runs to completion on a short-lived loop instead.  The
        coroutines passed here never raise, so a slot calling this is safe.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return None
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _guarded(self, what: str, call: Awaitable[Any]) -> None:
        try:
            await call
        except Exception:
            logger.exception("Failed to %s", what)

    async def _complete_on_backend(self, duration_seconds: int, xp_gained: int) -> None:
        try:
            progress = await self._gateway.complete_pomodoro(duration_seconds, xp_gained)
        except Exception:
            logger.exception("Failed to complete session on backend")
            return
        self._set_progress(progress)
        logger.info(
            "Session completed: %s pomodoros, %s XP total",
            progress.total_pomodoros_completed, progress.total_xp_earned,
        )

    def _save_timer(self, state: TimerState, selection: SelectedDuration) -> None:
        self._spawn(self._guarded(
            "save timer state",
            self._gateway.update_timer_state(
                state.minutes,
                state.seconds,
                state.is_running,
                state.is_paused,
                state.initial_total_seconds,
                selection.minutes,
                selection.seconds,
            ),
        ))

    def _save_creature(self, creature: CreatureState) -> None:
        self._spawn(self._guarded(
            "save creature state",
            self._gateway.save_creature_state(
                creature.level,
                creature.xp,
                creature.xp_needed,
                Stage(creature.stage).value,
            ),
        ))

    # ══════════════════════════════════════════════════════════════════
    #  DISPLAY
    # ══════════════════════════════════════════════════════════════════

    def _on_evolved(self, result: EvolutionResult) -> None:
        self._notify(
            f"Your creature evolved to level {result.level}!",
            NotificationKind.EVOLUTION,
        )

    def _set_progress(self, progress: AggregateProgress) -> None:
        self._progress = replace(progress)
        self.progress_updated.emit(self.progress)

    def _notify(
        self,
        message: str,
        kind: NotificationKind,
        *,
        duration_ms: int | None = None,
        action_label: str | None = None,
        action: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        if duration_ms is None:
            duration_ms = self._settings.duration_ms(kind.value)
        self.notified.emit(Notification(
            message=message,
            kind=kind,
            duration_ms=duration_ms,
            action_label=action_label,
            action=action,
        ))
