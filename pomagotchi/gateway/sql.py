"""SQLite-backed persistence gateway.

All database work is synchronous SQLAlchemy, pushed onto a single worker
thread so the event loop never blocks and backend commands run one at a
time in submission order.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from functools import partial
from typing import Callable, TypeVar

from sqlalchemy.orm import Session as OrmSession

from ..database.db import get_session, init_db
from ..database.models import CreatureRecord, TimerRecord, ProgressRecord
from ..gamification.creature import CreatureState, Stage
from ..timer.engine import SelectedDuration, TimerState
from .base import (
    SAVE_VERSION,
    AggregateProgress,
    GameState,
    PersistenceGateway,
    apply_experience,
    record_pomodoro,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── row <-> snapshot mapping ──────────────────────────────────────────────


def _creature_from_row(row: CreatureRecord) -> CreatureState:
    return CreatureState(
        level=row.level, xp=row.xp, xp_needed=row.xp_needed, stage=Stage(row.stage),
    )


def _creature_to_row(creature: CreatureState, row: CreatureRecord) -> None:
    row.level = creature.level
    row.xp = creature.xp
    row.xp_needed = creature.xp_needed
    row.stage = Stage(creature.stage).value


def _progress_from_row(row: ProgressRecord) -> AggregateProgress:
    return AggregateProgress(
        total_pomodoros_completed=row.total_pomodoros_completed,
        total_xp_earned=row.total_xp_earned,
        current_streak=row.current_streak,
        total_time_studied_seconds=row.total_time_studied_seconds,
        best_streak=row.best_streak,
        last_session_date=row.last_session_date,
    )


def _progress_to_row(progress: AggregateProgress, row: ProgressRecord) -> None:
    row.total_pomodoros_completed = progress.total_pomodoros_completed
    row.total_xp_earned = progress.total_xp_earned
    row.current_streak = progress.current_streak
    row.total_time_studied_seconds = progress.total_time_studied_seconds
    row.best_streak = progress.best_streak
    row.last_session_date = progress.last_session_date


def _timer_from_row(row: TimerRecord) -> tuple[TimerState, SelectedDuration]:
    timer = TimerState(
        minutes=row.minutes,
        seconds=row.seconds,
        is_running=row.is_running,
        is_paused=row.is_paused,
        initial_total_seconds=row.initial_total_seconds,
    )
    selection = SelectedDuration(
        minutes=row.last_selected_minutes, seconds=row.last_selected_seconds,
    )
    return timer, selection


def _timer_to_row(
    timer: TimerState, selection: SelectedDuration, row: TimerRecord,
) -> None:
    row.minutes = timer.minutes
    row.seconds = timer.seconds
    row.is_running = timer.is_running
    row.is_paused = timer.is_paused
    row.initial_total_seconds = timer.initial_total_seconds
    row.last_selected_minutes = selection.minutes
    row.last_selected_seconds = selection.seconds


def _single(db: OrmSession, model):
    """Fetch the one row of *model*, creating it if the table is empty."""
    row = db.query(model).first()
    if row is None:
        row = model()
        db.add(row)
        db.flush()
    return row


# ── gateway ───────────────────────────────────────────────────────────────


class SqlGateway(PersistenceGateway):
    """Persist game state in the Pomagotchi SQLite database."""

    def __init__(
        self,
        *,
        today: Callable[[], date] = date.today,
        create_tables: bool = True,
    ) -> None:
        self._today = today
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="pomagotchi-db",
        )
        if create_tables:
            init_db()

    async def _run(self, fn: Callable[..., T], *args) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(fn, *args))

    # ── commands ──────────────────────────────────────────────────────

    async def complete_pomodoro(
        self, duration_seconds: int, xp_gained: int,
    ) -> AggregateProgress:
        return await self._run(self._complete_pomodoro, duration_seconds, xp_gained)

    def _complete_pomodoro(self, duration_seconds: int, xp_gained: int) -> AggregateProgress:
        with get_session() as db:
            row = _single(db, ProgressRecord)
            progress = _progress_from_row(row)
            record_pomodoro(progress, duration_seconds, xp_gained, self._today())
            _progress_to_row(progress, row)
        logger.info(
            "Recorded pomodoro: %ss, +%s XP (total %s)",
            duration_seconds, xp_gained, progress.total_pomodoros_completed,
        )
        return progress

    async def save_creature_state(
        self, level: int, xp: int, xp_needed: int, stage: str,
    ) -> None:
        creature = CreatureState(level=level, xp=xp, xp_needed=xp_needed, stage=Stage(stage))
        await self._run(self._save_creature, creature)

    def _save_creature(self, creature: CreatureState) -> None:
        with get_session() as db:
            _creature_to_row(creature, _single(db, CreatureRecord))

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
        timer = TimerState(
            minutes=minutes,
            seconds=seconds,
            is_running=is_running,
            is_paused=is_paused,
            initial_total_seconds=initial_total_seconds,
        )
        selection = SelectedDuration(last_selected_minutes, last_selected_seconds)
        await self._run(self._save_timer, timer, selection)

    def _save_timer(self, timer: TimerState, selection: SelectedDuration) -> None:
        with get_session() as db:
            _timer_to_row(timer, selection, _single(db, TimerRecord))

    async def get_full_game_state(self) -> GameState | None:
        return await self._run(self._load_game_state)

    def _load_game_state(self) -> GameState | None:
        with get_session() as db:
            creature_row = db.query(CreatureRecord).first()
            timer_row = db.query(TimerRecord).first()
            progress_row = db.query(ProgressRecord).first()
            if creature_row is None or timer_row is None or progress_row is None:
                return None
            timer, selection = _timer_from_row(timer_row)
            return GameState(
                creature=_creature_from_row(creature_row),
                timer=timer,
                selection=selection,
                progress=_progress_from_row(progress_row),
                version=progress_row.version,
            )

    async def get_game_progress(self) -> AggregateProgress:
        return await self._run(self._load_progress)

    def _load_progress(self) -> AggregateProgress:
        with get_session() as db:
            return _progress_from_row(_single(db, ProgressRecord))

    async def reset_game_data(self) -> None:
        await self._run(self._write_game_state, GameState())
        logger.info("Game data reset to defaults")

    async def save_full_game_state(self, game_state: GameState) -> None:
        await self._run(self._write_game_state, game_state)

    def _write_game_state(self, state: GameState) -> None:
        with get_session() as db:
            _creature_to_row(state.creature, _single(db, CreatureRecord))
            _timer_to_row(state.timer, state.selection, _single(db, TimerRecord))
            progress_row = _single(db, ProgressRecord)
            _progress_to_row(state.progress, progress_row)
            progress_row.version = state.version or SAVE_VERSION

    async def get_creature_state(self) -> CreatureState:
        return await self._run(self._load_creature)

    def _load_creature(self) -> CreatureState:
        with get_session() as db:
            return _creature_from_row(_single(db, CreatureRecord))

    async def get_timer_state(self) -> tuple[TimerState, SelectedDuration]:
        return await self._run(self._load_timer)

    def _load_timer(self) -> tuple[TimerState, SelectedDuration]:
        with get_session() as db:
            return _timer_from_row(_single(db, TimerRecord))

    async def add_experience(self, points: int) -> CreatureState:
        return await self._run(self._add_experience, points)

    def _add_experience(self, points: int) -> CreatureState:
        with get_session() as db:
            creature_row = _single(db, CreatureRecord)
            progress_row = _single(db, ProgressRecord)
            creature = _creature_from_row(creature_row)
            progress = _progress_from_row(progress_row)
            apply_experience(creature, progress, points)
            _creature_to_row(creature, creature_row)
            _progress_to_row(progress, progress_row)
            return creature

    async def close(self) -> None:
        self._executor.shutdown(wait=True)
