"""SQLAlchemy ORM models for Pomagotchi.

Each table holds exactly one row, seeded by ``init_db``.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date
from sqlalchemy.orm import DeclarativeBase

from ..gamification.creature import BASE_XP_NEEDED
from ..timer.engine import DEFAULT_MINUTES, DEFAULT_SECONDS


class Base(DeclarativeBase):
    pass


class CreatureRecord(Base):
    """The creature's level, XP and stage."""

    __tablename__ = "creature_state"

    id = Column(Integer, primary_key=True, autoincrement=True)
    level = Column(Integer, nullable=False, default=1)
    xp = Column(Integer, nullable=False, default=0)
    xp_needed = Column(Integer, nullable=False, default=BASE_XP_NEEDED)
    stage = Column(String(10), nullable=False, default="egg")  # egg | baby | teen | adult

    def __repr__(self) -> str:
        return (
            f"<CreatureRecord level={self.level} xp={self.xp}/"
            f"{self.xp_needed} stage={self.stage}>"
        )


class TimerRecord(Base):
    """Last saved countdown plus the selected duration."""

    __tablename__ = "timer_state"

    id = Column(Integer, primary_key=True, autoincrement=True)
    minutes = Column(Integer, nullable=False, default=DEFAULT_MINUTES)
    seconds = Column(Integer, nullable=False, default=DEFAULT_SECONDS)
    is_running = Column(Boolean, nullable=False, default=False)
    is_paused = Column(Boolean, nullable=False, default=False)
    initial_total_seconds = Column(
        Integer, nullable=False, default=DEFAULT_MINUTES * 60 + DEFAULT_SECONDS,
    )
    last_selected_minutes = Column(Integer, nullable=False, default=DEFAULT_MINUTES)
    last_selected_seconds = Column(Integer, nullable=False, default=DEFAULT_SECONDS)

    def __repr__(self) -> str:
        return (
            f"<TimerRecord {self.minutes:02d}:{self.seconds:02d} "
            f"running={self.is_running} paused={self.is_paused}>"
        )


class ProgressRecord(Base):
    """Lifetime totals and streak bookkeeping."""

    __tablename__ = "game_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    total_pomodoros_completed = Column(Integer, nullable=False, default=0)
    total_xp_earned = Column(Integer, nullable=False, default=0)
    total_time_studied_seconds = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    best_streak = Column(Integer, nullable=False, default=0)
    last_session_date = Column(Date, nullable=True)
    version = Column(String(16), nullable=False, default="1.0.0")

    def __repr__(self) -> str:
        return (
            f"<ProgressRecord pomodoros={self.total_pomodoros_completed} "
            f"xp={self.total_xp_earned} streak={self.current_streak}>"
        )
