"""Pomagotchi — a Pomodoro timer that raises a virtual creature."""

__version__ = "1.0.0"
