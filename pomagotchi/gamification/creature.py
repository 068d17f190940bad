"""XP and evolution logic for the Pomagotchi creature.

XP Awards
---------
- Session runs out naturally:   25 XP, whatever the duration
- Session completed early:      25 XP x fraction completed, rounded up,
                                never below 1

Evolution Curve
---------------
The creature hatches at level 1 needing 100 XP.  Each level up carries
the surplus forward and multiplies the requirement by 1.5 (floored), so
one large grant can cross several thresholds at once.

Stages
------
    1   egg
    2   baby
    3   teen
    4+  adult

XP Event System
---------------
``ProgressionEngine`` is a :class:`QObject` that emits:

* **creature_changed(state)**  — after every XP grant
* **evolved(result)**          — when at least one level was gained
* **save_requested(state)**    — alongside ``evolved``; the owner
  forwards it to the persistence gateway
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

from PyQt6.QtCore import QObject, pyqtSignal


# ── constants (easy to adjust) ───────────────────────────────────────────

FULL_SESSION_XP = 25
BASE_XP_NEEDED = 100       # XP to go from level 1 → 2
XP_NEEDED_SCALING = 1.5    # each level needs 50% more than the last


class Stage(str, Enum):
    EGG = "egg"
    BABY = "baby"
    TEEN = "teen"
    ADULT = "adult"


# Ordered descending so the first match wins.
STAGE_THRESHOLDS: list[tuple[int, Stage]] = [
    (4, Stage.ADULT),
    (3, Stage.TEEN),
    (2, Stage.BABY),
    (1, Stage.EGG),
]


def stage_for_level(level: int) -> Stage:
    """Return the evolution stage for *level*."""
    for threshold, stage in STAGE_THRESHOLDS:
        if level >= threshold:
            return stage
    return Stage.EGG


@dataclass
class CreatureState:
    level: int = 1
    xp: int = 0
    xp_needed: int = BASE_XP_NEEDED
    stage: Stage = Stage.EGG


@dataclass(frozen=True)
class EvolutionResult:
    xp_gained: int
    evolved: bool
    level: int
    levels_gained: int


# ── XP math ──────────────────────────────────────────────────────────────


def calculate_xp(
    natural: bool,
    initial_total_seconds: int,
    remaining_seconds: int,
) -> int:
    """XP earned for a finished session.

    A natural finish always earns :data:`FULL_SESSION_XP`.  An early
    finish earns the completed fraction of it, rounded up, with a floor
    of 1 so any effort counts.
    """
    if natural:
        return FULL_SESSION_XP
    if initial_total_seconds <= 0:
        fraction = 0.0
    else:
        completed = initial_total_seconds - remaining_seconds
        fraction = max(0.0, min(1.0, completed / initial_total_seconds))
    return max(1, math.ceil(FULL_SESSION_XP * fraction))


def gain_experience(creature: CreatureState, points: int) -> int:
    """Add *points* to *creature* in place and evolve it.

    Returns the number of levels gained.
    """
    if points < 0:
        raise ValueError(f"XP grant must be >= 0, got {points}")
    creature.xp += points
    levels = 0
    while creature.xp >= creature.xp_needed:
        creature.level += 1
        creature.xp -= creature.xp_needed
        creature.xp_needed = math.floor(creature.xp_needed * XP_NEEDED_SCALING)
        levels += 1
    creature.stage = stage_for_level(creature.level)
    return levels


# ── progression engine ───────────────────────────────────────────────────


class ProgressionEngine(QObject):
    """Owns the creature and applies XP grants to it.

    Signals
    -------
    creature_changed(state: CreatureState)
        Emitted after every grant and every ``restore``.
    evolved(result: EvolutionResult)
        Emitted when a grant crossed at least one threshold.
    save_requested(state: CreatureState)
        Emitted together with ``evolved``.
    """

    creature_changed = pyqtSignal(object)
    evolved = pyqtSignal(object)
    save_requested = pyqtSignal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._creature = CreatureState()

    @property
    def creature(self) -> CreatureState:
        return replace(self._creature)

    def calculate_xp(
        self, natural: bool, initial_total_seconds: int, remaining_seconds: int,
    ) -> int:
        return calculate_xp(natural, initial_total_seconds, remaining_seconds)

    def apply_xp(self, xp_gained: int) -> EvolutionResult:
        levels = gain_experience(self._creature, xp_gained)
        result = EvolutionResult(
            xp_gained=xp_gained,
            evolved=levels > 0,
            level=self._creature.level,
            levels_gained=levels,
        )
        self.creature_changed.emit(self.creature)
        if result.evolved:
            self.evolved.emit(result)
            self.save_requested.emit(self.creature)
        return result

    def restore(self, creature: CreatureState) -> None:
        """Replace the creature wholesale (startup load, reset, undo)."""
        self._creature = replace(creature)
        self.creature_changed.emit(self.creature)
