"""User-facing notifications emitted by the session.

The session only describes *what* to show; the presentation layer owns
icons, animation and the countdown display.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable


class NotificationKind(Enum):
    SUCCESS = "success"
    EVOLUTION = "evolution"
    XP = "xp"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    message: str
    kind: NotificationKind
    duration_ms: int
    action_label: str | None = None
    action: Callable[[], Awaitable[Any]] | None = None

    @property
    def show_countdown(self) -> bool:
        """Warnings and anything with a button show a live countdown."""
        return self.action is not None or self.kind is NotificationKind.WARNING
