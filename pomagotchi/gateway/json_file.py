"""Save-file persistence gateway.

The whole game lives in one pretty-printed JSON document::

    ~/Library/Application Support/Pomagotchi/pomagotchi_save.json

The document is read once, kept in memory and rewritten after every
command that changes it.  Timer updates sent while the countdown is
running stay in memory only.  Until the file exists (or a command has
touched the game) ``get_full_game_state`` reports nothing saved.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Callable

from ..gamification.creature import CreatureState, Stage
from ..settings import APP_SUPPORT_DIR
from ..timer.engine import SelectedDuration, TimerState
from .base import (
    AggregateProgress,
    GameState,
    PersistenceGateway,
    apply_experience,
    record_pomodoro,
)

logger = logging.getLogger(__name__)

SAVE_PATH = APP_SUPPORT_DIR / "pomagotchi_save.json"


class JsonFileGateway(PersistenceGateway):
    """Persist game state as a single JSON save file."""

    def __init__(
        self,
        path: Path = SAVE_PATH,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._path = path
        self._today = today
        self._state: GameState | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ── disk I/O ──────────────────────────────────────────────────────

    def _read(self) -> GameState:
        if not self._path.exists():
            return GameState()
        data = json.loads(self._path.read_text(encoding="utf-8"))
        return GameState.from_dict(data)

    def _write(self, state: GameState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(state.to_dict(), indent=2) + "\n",
            encoding="utf-8",
        )

    async def _loaded(self) -> GameState:
        if self._state is None:
            self._state = await asyncio.to_thread(self._read)
            logger.info("Loaded save file %s", self._path)
        return self._state

    async def _flush(self) -> None:
        await asyncio.to_thread(self._write, replace(self._state))

    # ── commands ──────────────────────────────────────────────────────

    async def complete_pomodoro(
        self, duration_seconds: int, xp_gained: int,
    ) -> AggregateProgress:
        async with self._lock:
            state = await self._loaded()
            record_pomodoro(state.progress, duration_seconds, xp_gained, self._today())
            await self._flush()
            return replace(state.progress)

    async def save_creature_state(
        self, level: int, xp: int, xp_needed: int, stage: str,
    ) -> None:
        async with self._lock:
            state = await self._loaded()
            state.creature = CreatureState(
                level=level, xp=xp, xp_needed=xp_needed, stage=Stage(stage),
            )
            await self._flush()

    async def update_timer_state(
        self,
        minutes: int,
        seconds: int,
        is_running: bool,
        is_paused: bool,
        initial_total_seconds: int,
        last_selected_minutes: int,
        last_selected_seconds: int,
    ) -> None:
        async with self._lock:
            state = await self._loaded()
            state.timer = TimerState(
                minutes=minutes,
                seconds=seconds,
                is_running=is_running,
                is_paused=is_paused,
                initial_total_seconds=initial_total_seconds,
            )
            state.selection = SelectedDuration(last_selected_minutes, last_selected_seconds)
            if not is_running:
                await self._flush()

    async def get_full_game_state(self) -> GameState | None:
        async with self._lock:
            if self._state is None and not await asyncio.to_thread(self._path.exists):
                return None  # nothing saved yet
            state = await self._loaded()
            return GameState.from_dict(state.to_dict())

    async def get_game_progress(self) -> AggregateProgress:
        async with self._lock:
            state = await self._loaded()
            return replace(state.progress)

    async def reset_game_data(self) -> None:
        async with self._lock:
            self._state = GameState()
            await self._flush()
        logger.info("Save file %s reset to defaults", self._path)

    async def save_full_game_state(self, game_state: GameState) -> None:
        async with self._lock:
            self._state = GameState.from_dict(game_state.to_dict())
            await self._flush()

    async def add_experience(self, points: int) -> CreatureState:
        async with self._lock:
            state = await self._loaded()
            apply_experience(state.creature, state.progress, points)
            await self._flush()
            return replace(state.creature)
