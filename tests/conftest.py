"""Shared test fixtures."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from app.config import Settings
from app.services.event_log import EventLog, TransitionEvent
from app.services.state_store import StateStore


BOOT = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = BOOT):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class RecordingSink:
    def __init__(self):
        self.events: list[TransitionEvent] = []
        self._lock = threading.Lock()

    def write(self, event: TransitionEvent) -> None:
        with self._lock:
            self.events.append(event)


class FailingSink:
    def __init__(self):
        self.calls = 0

    def write(self, event: TransitionEvent) -> None:
        self.calls += 1
        raise OSError("disk unavailable")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def event_log(sink) -> EventLog:
    """An EventLog without a writer thread; flush() drains it inline."""
    return EventLog(sinks=[sink], maxsize=10_000)


@pytest.fixture
def store(event_log, clock) -> StateStore:
    return StateStore(event_log, clock=clock, boot_time=BOOT)


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    s = Settings()
    s.EVENT_SINKS = "file"
    s.EVENT_LOG_PATH = str(tmp_path / "logs" / "updatetime.log")
    s.INACTIVITY_TIMEOUT = 300.0
    s.SWEEP_INTERVAL = 60.0
    s.PROBE_TIMEOUT = 1.0
    s.CERT_TIMEOUT = 1.0
    return s
