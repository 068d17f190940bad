"""Persistence gateway package."""

from ..settings import Settings
from .base import (
    PersistenceGateway,
    GameState,
    AggregateProgress,
    SAVE_VERSION,
    record_pomodoro,
)
from .json_file import JsonFileGateway
from .sql import SqlGateway


def create_gateway(settings: Settings) -> PersistenceGateway:
    """Build the gateway named by ``settings.backend``."""
    if settings.backend == "json":
        return JsonFileGateway()
    return SqlGateway()


__all__ = [
    "PersistenceGateway",
    "GameState",
    "AggregateProgress",
    "SAVE_VERSION",
    "record_pomodoro",
    "JsonFileGateway",
    "SqlGateway",
    "create_gateway",
]
