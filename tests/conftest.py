"""Shared pytest fixtures for the tracker test suite."""

import stat
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from webcam_tracker.runtime.session_manager import SessionManager
from webcam_tracker.storage import db


class FakeClock:
    """Deterministic clock advancing a fixed step per call."""

    def __init__(self, start: datetime = None, step: float = 1.0):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step)

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def fake_log(tmp_path):
    """Factory writing an executable /bin/sh stand-in for the `log` tool."""

    def make(body: str) -> str:
        script = tmp_path / "log"
        script.write_text("#!/bin/sh\n" + body + "\n")
        script.chmod(script.stat().st_mode | stat.S_IEXEC)
        return str(script)

    return make


@pytest.fixture
def db_path(tmp_path) -> Path:
    path = tmp_path / "sessions.db"
    db.init_db(path)
    return path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def manager(db_path, clock) -> SessionManager:
    return SessionManager(db_path, clock=clock)
