"""Timer package."""

from .engine import (
    TimerEngine,
    TimerState,
    TimerPhase,
    SelectedDuration,
    TICK_INTERVAL_MS,
    DEFAULT_MINUTES,
    DEFAULT_SECONDS,
)
from .scheduler import TickScheduler, QtTickScheduler, AsyncioTickScheduler

__all__ = [
    "TimerEngine",
    "TimerState",
    "TimerPhase",
    "SelectedDuration",
    "TICK_INTERVAL_MS",
    "DEFAULT_MINUTES",
    "DEFAULT_SECONDS",
    "TickScheduler",
    "QtTickScheduler",
    "AsyncioTickScheduler",
]
