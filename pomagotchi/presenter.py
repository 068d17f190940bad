"""Terminal presenter — renders session signals as plain text."""

from __future__ import annotations

import sys
from typing import TextIO

from .gamification.creature import CreatureState, Stage
from .gateway.base import AggregateProgress
from .notifications import Notification, NotificationKind
from .session import FocusSession
from .timer.engine import TimerState


STAGE_EMOJI: dict[Stage, str] = {
    Stage.EGG: "🥚",
    Stage.BABY: "🐣",
    Stage.TEEN: "🐤",
    Stage.ADULT: "🐔",
}

NOTIFICATION_ICONS: dict[NotificationKind, str] = {
    NotificationKind.SUCCESS: "🎉",
    NotificationKind.EVOLUTION: "🌟",
    NotificationKind.XP: "✨",
    NotificationKind.WARNING: "⚠️",
    NotificationKind.ERROR: "❌",
}


def format_clock(state: TimerState) -> str:
    return f"{state.minutes:02d}:{state.seconds:02d}"


def format_study_time(total_seconds: int) -> str:
    """``"2h 5m"`` above an hour, ``"5m"`` below."""
    hours, rest = divmod(max(0, total_seconds), 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_creature(creature: CreatureState) -> str:
    emoji = STAGE_EMOJI.get(Stage(creature.stage), STAGE_EMOJI[Stage.EGG])
    return (
        f"{emoji}  Level {creature.level} {Stage(creature.stage).value} "
        f"({creature.xp}/{creature.xp_needed} XP)"
    )


def format_progress(progress: AggregateProgress) -> str:
    return (
        f"Pomodoros: {progress.total_pomodoros_completed}  "
        f"XP: {progress.total_xp_earned}  "
        f"Streak: {progress.current_streak}  "
        f"Studied: {format_study_time(progress.total_time_studied_seconds)}"
    )


def format_notification(notification: Notification) -> str:
    icon = NOTIFICATION_ICONS.get(notification.kind, "🎉")
    text = f"{icon} {notification.message}"
    if notification.action_label:
        text += f" [{notification.action_label}]"
    return text


class ConsolePresenter:
    """Subscribe to a :class:`FocusSession` and print what it reports."""

    def __init__(
        self,
        session: FocusSession,
        stream: TextIO | None = None,
        *,
        live_clock: bool = True,
    ) -> None:
        self._stream = stream or sys.stdout
        self._live_clock = live_clock
        session.timer_updated.connect(self.update_timer_display)
        session.creature_updated.connect(self.update_creature_display)
        session.progress_updated.connect(self.update_progress_display)
        session.notified.connect(self.show_notification)

    def _line(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()

    def update_timer_display(self, state: TimerState) -> None:
        if not self._live_clock:
            return
        # Overwrite the same terminal line every tick.
        self._stream.write(f"\r⏱  {format_clock(state)} ")
        self._stream.flush()

    def update_creature_display(self, creature: CreatureState) -> None:
        self._line(format_creature(creature))

    def update_progress_display(self, progress: AggregateProgress) -> None:
        self._line(format_progress(progress))

    def show_notification(self, notification: Notification) -> None:
        self._line(format_notification(notification))
