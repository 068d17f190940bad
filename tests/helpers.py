"""Shared test helpers for Pomagotchi."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Callable

from pomagotchi.gamification.creature import CreatureState, Stage, gain_experience
from pomagotchi.gateway.base import (
    GameState, PersistenceGateway, record_pomodoro,
)


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeScheduler:
    """Tick scheduler driven by hand with :meth:`fire`."""

    def __init__(self):
        self._callback: Callable[[], None] | None = None
        self.starts = 0

    @property
    def is_active(self) -> bool:
        return self._callback is not None

    def start(self, callback):
        self._callback = callback
        self.starts += 1

    def stop(self):
        self._callback = None

    def fire(self, times: int = 1) -> None:
        """Deliver up to *times* ticks, stopping early if the engine stops."""
        for _ in range(times):
            if self._callback is None:
                return
            self._callback()


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryGateway(PersistenceGateway):
    """Gateway keeping state in memory and logging every call.

    Names placed in :attr:`fail` make that command raise ``RuntimeError``.
    """

    def __init__(self, state: GameState | None = None, *, today=date.today):
        self.state = state or GameState()
        self.calls: list[tuple] = []
        self.fail: set[str] = set()
        self._today = today

    def _enter(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise RuntimeError(f"{name} failed")

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    async def complete_pomodoro(self, duration_seconds, xp_gained):
        self._enter("complete_pomodoro", duration_seconds, xp_gained)
        record_pomodoro(self.state.progress, duration_seconds, xp_gained, self._today())
        return replace(self.state.progress)

    async def save_creature_state(self, level, xp, xp_needed, stage):
        self._enter("save_creature_state", level, xp, xp_needed, stage)
        self.state.creature = CreatureState(level, xp, xp_needed, Stage(stage))

    async def update_timer_state(
        self, minutes, seconds, is_running, is_paused,
        initial_total_seconds, last_selected_minutes, last_selected_seconds,
    ):
        self._enter(
            "update_timer_state", minutes, seconds, is_running, is_paused,
            initial_total_seconds, last_selected_minutes, last_selected_seconds,
        )
        self.state.timer.minutes = minutes
        self.state.timer.seconds = seconds
        self.state.timer.is_running = is_running
        self.state.timer.is_paused = is_paused
        self.state.timer.initial_total_seconds = initial_total_seconds
        self.state.selection.minutes = last_selected_minutes
        self.state.selection.seconds = last_selected_seconds

    async def get_full_game_state(self):
        self._enter("get_full_game_state")
        return GameState.from_dict(self.state.to_dict())

    async def get_game_progress(self):
        self._enter("get_game_progress")
        return replace(self.state.progress)

    async def reset_game_data(self):
        self._enter("reset_game_data")
        self.state = GameState()

    async def save_full_game_state(self, game_state):
        self._enter("save_full_game_state", game_state)
        self.state = GameState.from_dict(game_state.to_dict())

    async def add_experience(self, points):
        self._enter("add_experience", points)
        self.state.progress.total_xp_earned += points
        gain_experience(self.state.creature, points)
        return replace(self.state.creature)
