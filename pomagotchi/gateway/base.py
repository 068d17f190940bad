"""Persistence gateway contract.

Every durable write in Pomagotchi goes through a :class:`PersistenceGateway`.
The session never touches storage itself; it awaits (or fires and
forgets) these coroutines.

Commands
--------
==========================  ================================================
complete_pomodoro            record a finished session, return progress
save_creature_state          overwrite the stored creature
update_timer_state           overwrite the stored countdown + selection
get_full_game_state          everything, or ``None`` when nothing is stored
get_game_progress            aggregate progress only
reset_game_data              wipe back to defaults
save_full_game_state         overwrite everything (undo restore)
add_experience               grant XP outside a session
==========================  ================================================

The backend is the source of truth for aggregate progress: totals and
streaks are computed here by :func:`record_pomodoro`, never by the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..gamification.creature import CreatureState, Stage, gain_experience
from ..timer.engine import SelectedDuration, TimerState


SAVE_VERSION = "1.0.0"


# ── state snapshots ───────────────────────────────────────────────────────


@dataclass
class AggregateProgress:
    """Lifetime study totals, owned by the backend."""

    total_pomodoros_completed: int = 0
    total_xp_earned: int = 0
    current_streak: int = 0
    total_time_studied_seconds: int = 0
    best_streak: int = 0
    last_session_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_pomodoros_completed": self.total_pomodoros_completed,
            "total_xp_earned": self.total_xp_earned,
            "total_time_studied_seconds": self.total_time_studied_seconds,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "last_session_date": (
                self.last_session_date.isoformat()
                if self.last_session_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AggregateProgress":
        last = data.get("last_session_date")
        return cls(
            total_pomodoros_completed=int(data.get("total_pomodoros_completed", 0)),
            total_xp_earned=int(data.get("total_xp_earned", 0)),
            current_streak=int(data.get("current_streak", 0)),
            total_time_studied_seconds=int(data.get("total_time_studied_seconds", 0)),
            best_streak=int(data.get("best_streak", 0)),
            last_session_date=date.fromisoformat(last) if last else None,
        )


@dataclass
class GameState:
    """Full persisted snapshot."""

    creature: CreatureState = field(default_factory=CreatureState)
    timer: TimerState = field(default_factory=TimerState)
    selection: SelectedDuration = field(default_factory=SelectedDuration)
    progress: AggregateProgress = field(default_factory=AggregateProgress)
    version: str = SAVE_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the save-file layout (snake_case, plain values)."""
        return {
            "creature": {
                "level": self.creature.level,
                "xp": self.creature.xp,
                "xp_needed": self.creature.xp_needed,
                "stage": Stage(self.creature.stage).value,
            },
            "timer": {
                "minutes": self.timer.minutes,
                "seconds": self.timer.seconds,
                "is_running": self.timer.is_running,
                "is_paused": self.timer.is_paused,
                "initial_total_seconds": self.timer.initial_total_seconds,
                "last_selected_minutes": self.selection.minutes,
                "last_selected_seconds": self.selection.seconds,
            },
            "progress": self.progress.to_dict(),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameState":
        c = data["creature"]
        t = data["timer"]
        return cls(
            creature=CreatureState(
                level=int(c["level"]),
                xp=int(c["xp"]),
                xp_needed=int(c["xp_needed"]),
                stage=Stage(c["stage"]),
            ),
            timer=TimerState(
                minutes=int(t["minutes"]),
                seconds=int(t["seconds"]),
                is_running=bool(t["is_running"]),
                is_paused=bool(t["is_paused"]),
                initial_total_seconds=int(t["initial_total_seconds"]),
            ),
            selection=SelectedDuration(
                minutes=int(t["last_selected_minutes"]),
                seconds=int(t["last_selected_seconds"]),
            ),
            progress=AggregateProgress.from_dict(data.get("progress") or {}),
            version=data.get("version", SAVE_VERSION),
        )


# ── backend rules ─────────────────────────────────────────────────────────


def record_pomodoro(
    progress: AggregateProgress,
    duration_seconds: int,
    xp_gained: int,
    today: date,
) -> None:
    """Fold one finished session into *progress* in place.

    Streak rules: first session ever starts at 1; another session the
    same calendar day changes nothing; the next calendar day extends the
    streak; any longer gap restarts it at 1.  The best streak only ever
    grows.
    """
    if duration_seconds < 0 or xp_gained < 0:
        raise ValueError("duration_seconds and xp_gained must be >= 0")

    progress.total_pomodoros_completed += 1
    progress.total_xp_earned += xp_gained
    progress.total_time_studied_seconds += duration_seconds

    last = progress.last_session_date
    if last is None:
        progress.current_streak = 1
        progress.best_streak = max(progress.best_streak, 1)
    elif (today - last).days == 0:
        pass  # same calendar day
    elif (today - last).days == 1:
        progress.current_streak += 1
        progress.best_streak = max(progress.best_streak, progress.current_streak)
    else:
        progress.current_streak = 1  # streak broken

    progress.last_session_date = today


def apply_experience(
    creature: CreatureState,
    progress: AggregateProgress,
    points: int,
) -> None:
    """Grant XP outside a session (``add_experience``)."""
    progress.total_xp_earned += points
    gain_experience(creature, points)


# ── contract ──────────────────────────────────────────────────────────────


class PersistenceGateway(ABC):
    """Asynchronous command boundary to the persistence backend."""

    @abstractmethod
    async def complete_pomodoro(
        self, duration_seconds: int, xp_gained: int,
    ) -> AggregateProgress: ...

    @abstractmethod
    async def save_creature_state(
        self, level: int, xp: int, xp_needed: int, stage: str,
    ) -> None: ...

    @abstractmethod
    async def update_timer_state(
        self,
        minutes: int,
        seconds: int,
        is_running: bool,
        is_paused: bool,
        initial_total_seconds: int,
        last_selected_minutes: int,
        last_selected_seconds: int,
    ) -> None: ...

    @abstractmethod
    async def get_full_game_state(self) -> GameState | None: ...

    @abstractmethod
    async def get_game_progress(self) -> AggregateProgress: ...

    @abstractmethod
    async def reset_game_data(self) -> None: ...

    @abstractmethod
    async def save_full_game_state(self, game_state: GameState) -> None: ...

    # ── single-part reads ─────────────────────────────────────────────

    async def get_creature_state(self) -> CreatureState:
        state = await self.get_full_game_state()
        return state.creature if state else CreatureState()

    async def get_timer_state(self) -> tuple[TimerState, SelectedDuration]:
        state = await self.get_full_game_state()
        if state is None:
            return TimerState(), SelectedDuration()
        return state.timer, state.selection

    @abstractmethod
    async def add_experience(self, points: int) -> CreatureState: ...

    async def close(self) -> None:
        """Release backend resources.  Default: nothing to release."""
