"""Shared pytest fixtures for Pomagotchi tests."""

import asyncio
import sys
import pytest

from PyQt6.QtCore import QCoreApplication

from pomagotchi.database.db import configure_engine, init_db
from pomagotchi.gateway.sql import SqlGateway
from pomagotchi.session import FocusSession
from pomagotchi.settings import Settings
from pomagotchi.timer.engine import TimerEngine

from helpers import FakeClock, FakeScheduler, MemoryGateway


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def engine(qapp, scheduler):
    """Fresh TimerEngine ticking from a hand-driven scheduler."""
    return TimerEngine(parent=None, scheduler=scheduler)


@pytest.fixture
def sql_gateway():
    gateway = SqlGateway()
    yield gateway
    asyncio.run(gateway.close())


@pytest.fixture
def gateway():
    """In-memory gateway that records every call."""
    return MemoryGateway()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(qapp, gateway, scheduler, clock):
    return FocusSession(
        gateway, settings=Settings(), scheduler=scheduler, clock=clock,
    )
