"""Gamification package."""

from .creature import (
    ProgressionEngine,
    CreatureState,
    EvolutionResult,
    Stage,
    calculate_xp,
    gain_experience,
    stage_for_level,
    FULL_SESSION_XP,
    BASE_XP_NEEDED,
    XP_NEEDED_SCALING,
)

__all__ = [
    "ProgressionEngine",
    "CreatureState",
    "EvolutionResult",
    "Stage",
    "calculate_xp",
    "gain_experience",
    "stage_for_level",
    "FULL_SESSION_XP",
    "BASE_XP_NEEDED",
    "XP_NEEDED_SCALING",
]
