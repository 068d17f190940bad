"""Tests for the ``pomagotchi`` command line.

Each test runs ``main([...])`` end to end against a JSON save file in
``tmp_path`` with fast ticks, so no real settings or save data are touched.
"""

import asyncio
import json
import threading

import pytest

import pomagotchi.__main__ as cli
from pomagotchi.gamification.creature import CreatureState, Stage
from pomagotchi.gateway.base import AggregateProgress, GameState
from pomagotchi.gateway.json_file import JsonFileGateway
from pomagotchi.session import FocusSession
from pomagotchi.settings import Settings
from pomagotchi.timer.engine import SelectedDuration, TimerState
from pomagotchi.timer.scheduler import AsyncioTickScheduler


@pytest.fixture
def save_path(tmp_path):
    return tmp_path / "pomagotchi_save.json"


@pytest.fixture
def cli_env(qapp, monkeypatch, save_path):
    """Point the CLI at a temporary save file with 1 ms ticks."""
    monkeypatch.setattr(cli, "load_settings", lambda: Settings(backend="json"))
    monkeypatch.setattr(cli, "create_gateway", lambda settings: JsonFileGateway(save_path))
    monkeypatch.setattr(
        cli, "build_session",
        lambda gateway, settings: FocusSession(
            gateway, settings=settings, scheduler=AsyncioTickScheduler(1),
        ),
    )
    return save_path


def _seed(path):
    state = GameState(
        creature=CreatureState(level=2, xp=60, xp_needed=150, stage=Stage.BABY),
        timer=TimerState(minutes=5, seconds=0, initial_total_seconds=300),
        selection=SelectedDuration(5, 0),
        progress=AggregateProgress(
            total_pomodoros_completed=6, total_xp_earned=160,
            current_streak=2, total_time_studied_seconds=4500,
        ),
    )
    asyncio.run(JsonFileGateway(path).save_full_game_state(state))


def _run_main(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


def _saved(path):
    return json.loads(path.read_text(encoding="utf-8"))


# ═══════════════════════════════════════════════════════════════════════════
#  ARGUMENTS
# ═══════════════════════════════════════════════════════════════════════════


class TestParser:

    def test_run_options(self):
        args = cli.build_parser().parse_args(["--backend", "json", "run", "--seconds", "30"])
        assert (args.backend, args.command) == ("json", "run")
        assert (args.minutes, args.seconds) == (None, 30)

    def test_unknown_backend_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--backend", "postgres", "status"])


# ═══════════════════════════════════════════════════════════════════════════
#  COMMANDS
# ═══════════════════════════════════════════════════════════════════════════


class TestStatus:

    def test_prints_creature_and_progress(self, cli_env, capsys):
        _seed(cli_env)

        assert _run_main(["status"]) == 0

        out = capsys.readouterr().out
        assert "Level 2 baby (60/150 XP)" in out
        assert "Pomodoros: 6  XP: 160  Streak: 2  Studied: 1h 15m" in out

    def test_fresh_install(self, cli_env, capsys):
        assert _run_main(["status"]) == 0
        assert "Level 1 egg (0/100 XP)" in capsys.readouterr().out
        assert not cli_env.exists()


class TestRun:

    def test_one_session_is_recorded(self, cli_env, capsys):
        assert _run_main(["run", "--seconds", "1"]) == 0

        data = _saved(cli_env)
        assert data["progress"]["total_pomodoros_completed"] == 1
        assert data["progress"]["total_time_studied_seconds"] == 1
        assert data["creature"]["xp"] == 25
        assert data["timer"]["last_selected_seconds"] == 1
        assert "Pomodoro completed! Your creature gained 25 XP!" in capsys.readouterr().out

    def test_keeps_stored_duration_without_options(self, cli_env):
        asyncio.run(JsonFileGateway(cli_env).update_timer_state(0, 1, False, False, 1, 0, 1))

        assert _run_main(["run"]) == 0
        assert _saved(cli_env)["progress"]["total_time_studied_seconds"] == 1


class TestReset:

    def test_wipes_save_file(self, cli_env, monkeypatch, capsys):
        _seed(cli_env)

        async def decline(timeout):
            assert timeout == 8.0
            return False

        monkeypatch.setattr(cli, "confirm_undo", decline)

        assert _run_main(["reset"]) == 0

        assert GameState.from_dict(_saved(cli_env)) == GameState()
        out = capsys.readouterr().out
        assert "All data has been reset! [Undo]" in out
        assert "Press Enter within 8s to undo." in out

    def test_enter_undoes_the_reset(self, cli_env, monkeypatch, capsys):
        _seed(cli_env)

        async def accept(timeout):
            return True

        monkeypatch.setattr(cli, "confirm_undo", accept)

        assert _run_main(["reset"]) == 0

        data = _saved(cli_env)
        assert data["creature"]["level"] == 2
        assert data["progress"]["total_pomodoros_completed"] == 6
        assert "Data has been restored!" in capsys.readouterr().out


class TestConfirmUndo:

    def test_enter_confirms(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", _Lines("\n"))
        assert asyncio.run(cli.confirm_undo(5)) is True

    def test_end_of_input_declines(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", _Lines(""))
        assert asyncio.run(cli.confirm_undo(5)) is False

    def test_timeout_declines(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", _Lines(None))
        assert asyncio.run(cli.confirm_undo(0.05)) is False


class _Lines:
    """Stand-in stdin; ``None`` blocks until the test run ends."""

    def __init__(self, line):
        self._line = line

    def readline(self):
        if self._line is None:
            threading.Event().wait()
        return self._line
