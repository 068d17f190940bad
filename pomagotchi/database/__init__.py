"""Database package."""

from .db import configure_engine, get_session, init_db
from .models import CreatureRecord, TimerRecord, ProgressRecord

__all__ = [
    "configure_engine",
    "get_session",
    "init_db",
    "CreatureRecord",
    "TimerRecord",
    "ProgressRecord",
]
