"""Tick schedulers — the engine's only link to wall-clock time.

The :class:`~pomagotchi.timer.engine.TimerEngine` never sleeps or reads a
clock.  It hands a callback to a scheduler and the scheduler calls it
once per interval until stopped.

Implementations
---------------
- :class:`QtTickScheduler`       — ``QTimer`` for hosts running a Qt loop.
- :class:`AsyncioTickScheduler`  — ``loop.call_later`` for asyncio hosts
  (the CLI).

Tests inject a fake that fires ticks by hand (see ``tests/helpers.py``).
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol

from PyQt6.QtCore import QObject, QTimer


class TickScheduler(Protocol):
    """Periodic callback port.  At most one callback is active."""

    @property
    def is_active(self) -> bool: ...

    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class QtTickScheduler:
    """Drive ticks from a ``QTimer``."""

    def __init__(self, interval_ms: int, parent: QObject | None = None) -> None:
        self._qt_timer = QTimer(parent)
        self._qt_timer.setInterval(interval_ms)
        self._callback: Callable[[], None] | None = None
        self._qt_timer.timeout.connect(self._on_timeout)

    @property
    def is_active(self) -> bool:
        return self._qt_timer.isActive()

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._qt_timer.start()

    def stop(self) -> None:
        self._qt_timer.stop()
        self._callback = None

    def _on_timeout(self) -> None:
        if self._callback is not None:
            self._callback()


class AsyncioTickScheduler:
    """Drive ticks from the running asyncio loop.

    Each tick re-arms itself with ``call_later`` so a slow callback
    never stacks up overlapping ticks.
    """

    def __init__(self, interval_ms: int) -> None:
        self._interval = interval_ms / 1000
        self._handle: asyncio.TimerHandle | None = None
        self._callback: Callable[[], None] | None = None

    @property
    def is_active(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], None]) -> None:
        self.stop()
        self._callback = callback
        self._arm()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    def _arm(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        callback = self._callback
        if callback is None:
            return
        # Re-arm first; the callback may stop us.
        self._arm()
        callback()
