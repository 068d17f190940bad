"""Allow running Pomagotchi as a module: python -m pomagotchi."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import threading

from PyQt6.QtCore import QCoreApplication

from .gateway import PersistenceGateway, create_gateway
from .presenter import ConsolePresenter, format_creature, format_progress
from .session import FocusSession
from .settings import BACKENDS, Settings, load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pomagotchi",
        description="Pomodoro timer that raises a virtual creature.",
    )
    parser.add_argument(
        "--backend", choices=BACKENDS, default=None,
        help="persistence backend (default: from settings.json)",
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="run one focus session (Ctrl+C finishes early)")
    run.add_argument("--minutes", type=int, default=None)
    run.add_argument("--seconds", type=int, default=None)

    sub.add_parser("status", help="show the creature and study totals")
    sub.add_parser("reset", help="wipe all game data (Enter undoes it)")
    return parser


def build_session(gateway: PersistenceGateway, settings: Settings) -> FocusSession:
    return FocusSession(gateway, settings=settings)


# ── stdin ─────────────────────────────────────────────────────────────────


def _read_line(loop: asyncio.AbstractEventLoop) -> asyncio.Future:
    """Read one stdin line on a daemon thread.

    A blocked ``readline`` cannot be cancelled, so the thread is left to
    die with the process instead of holding up loop shutdown.
    """
    future = loop.create_future()

    def deliver(line: str) -> None:
        if not future.done():
            future.set_result(line)

    def reader() -> None:
        try:
            line = sys.stdin.readline()
        except (OSError, ValueError):
            line = ""
        if not loop.is_closed():
            loop.call_soon_threadsafe(deliver, line)

    threading.Thread(target=reader, name="pomagotchi-stdin", daemon=True).start()
    return future


async def confirm_undo(timeout: float) -> bool:
    """``True`` if the user pressed Enter within *timeout* seconds."""
    loop = asyncio.get_running_loop()
    try:
        line = await asyncio.wait_for(_read_line(loop), timeout)
    except asyncio.TimeoutError:
        return False
    return line != ""  # EOF


# ── commands ──────────────────────────────────────────────────────────────


async def _run(session: FocusSession, minutes: int | None, seconds: int | None) -> int:
    done = asyncio.Event()
    session.session_completed.connect(lambda _data: done.set())

    await session.load()
    if minutes is not None or seconds is not None:
        session.set_duration(minutes or 0, seconds or 0)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, session.complete_now)
        handling_sigint = True
    except (NotImplementedError, RuntimeError):
        handling_sigint = False  # Windows, or not the main thread

    try:
        session.start()
        await done.wait()
        await session.drain()
    finally:
        if handling_sigint:
            loop.remove_signal_handler(signal.SIGINT)
    return 0


async def _status(session: FocusSession) -> int:
    ok = await session.load()
    print(format_creature(session.creature))
    print(format_progress(session.progress))
    return 0 if ok else 1


async def _reset(session: FocusSession, settings: Settings) -> int:
    await session.load()
    if not await session.reset_all_data():
        await session.drain()
        return 1

    window = settings.undo_window_seconds
    print(f"Press Enter within {window:g}s to undo.", flush=True)
    if await confirm_undo(window):
        await session.undo_data_reset()
    await session.drain()
    return 0


async def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    gateway = create_gateway(settings)
    try:
        session = build_session(gateway, settings)
        if args.command == "status":
            return await _status(session)
        presenter = ConsolePresenter(session)  # noqa: F841  keeps slots alive
        if args.command == "reset":
            return await _reset(session, settings)
        return await _run(
            session, getattr(args, "minutes", None), getattr(args, "seconds", None),
        )
    finally:
        await gateway.close()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    settings = load_settings()
    if args.backend:
        settings.backend = args.backend

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Pomagotchi")
    app.setOrganizationName("Pomagotchi")

    sys.exit(asyncio.run(_dispatch(args, settings)))


if __name__ == "__main__":
    main()
