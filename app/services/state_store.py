"""
In-memory table of per-host liveness state.

One StateStore instance is created at startup and shared by the request
handlers and the eviction sweeper. Every read and write of the table goes
through a single lock; the only work done while holding it is the table
mutation and non-blocking hand-offs to the event log and the listeners.
"""
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Optional

from .event_log import EventKind, EventLog, TransitionEvent, utcnow

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[TransitionEvent], None]


@dataclass
class ServiceState:
    host: str
    is_up: bool
    last_change: datetime
    last_seen: datetime
    down_since: Optional[datetime] = None  # set only while the host is down

    @property
    def status(self) -> str:
        return "up" if self.is_up else "down"

    def downtime(self, now: datetime) -> timedelta:
        """Length of the current downtime window, zero while up."""
        if self.down_since is None:
            return timedelta(0)
        return now - self.down_since


class StateStore:
    def __init__(self, event_log: EventLog, clock: Clock = utcnow, boot_time: Optional[datetime] = None):
        self.event_log = event_log
        self.clock = clock
        self.boot_time = boot_time or clock()
        self._states: dict[str, ServiceState] = {}
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        """
        Register a callback that receives every emitted event.

        Listeners run while the table lock is held, in the order events are
        generated, so they must not block.
        """
        self._listeners.append(listener)

    def update(self, host: str, is_up: bool) -> None:
        """
        Record a liveness report for a host.

        Creates the entry on first sight, refreshes last_seen on every call
        and emits an event only when the liveness actually flips.
        """
        event = None
        with self._lock:
            now = self.clock()
            state = self._states.get(host)

            if state is None:
                self._states[host] = ServiceState(
                    host=host,
                    is_up=is_up,
                    last_change=now,
                    last_seen=now,
                    down_since=None if is_up else now,
                )
                event = TransitionEvent(
                    start=self.boot_time,
                    end=now,
                    reason=f"Added host '{host}' to the list of monitored hosts",
                    kind=EventKind.ADDED,
                    host=host,
                )
            else:
                state.last_seen = now

                if state.is_up != is_up:
                    start = now
                    if is_up and state.down_since is not None:
                        start = state.down_since

                    event = TransitionEvent(
                        start=start,
                        end=now,
                        reason=f"Host '{host}' is {'up' if is_up else 'down'}",
                        kind=EventKind.UP if is_up else EventKind.DOWN,
                        host=host,
                    )
                    state.down_since = None if is_up else now
                    state.is_up = is_up
                    state.last_change = now

            failures = []
            if event is not None:
                self.event_log.append(event)
                failures = self._notify([event])

        self._log_failures(failures)
        if event is not None:
            if event.kind == EventKind.ADDED:
                logger.info(f"➕ Added host '{host}' to the list of monitored hosts ({'up' if is_up else 'down'})")
            elif event.kind == EventKind.UP:
                logger.info(f"✅ Host '{host}' is up (was down for {event.duration_seconds:.0f}s)")
            else:
                logger.warning(f"🔴 Host '{host}' is down")

    report_liveness = update

    def evict_inactive(self, timeout: timedelta, now: Optional[datetime] = None) -> list[TransitionEvent]:
        """Remove every host not reported for longer than `timeout`."""
        events = []
        with self._lock:
            now = now or self.clock()
            for host, state in list(self._states.items()):
                if now - state.last_seen > timeout:
                    del self._states[host]
                    event = TransitionEvent(
                        start=state.last_seen,
                        end=now,
                        reason=f"Removed host '{host}' from the list of monitored hosts after {timeout.total_seconds():g}s of inactivity",
                        kind=EventKind.EVICTED,
                        host=host,
                    )
                    self.event_log.append(event)
                    events.append(event)
            failures = self._notify(events)

        self._log_failures(failures)
        return events

    def snapshot(self) -> list[ServiceState]:
        """Point-in-time copies of every entry, ordered by host."""
        with self._lock:
            states = [replace(s) for s in self._states.values()]
        return sorted(states, key=lambda s: s.host)

    def get(self, host: str) -> Optional[ServiceState]:
        with self._lock:
            state = self._states.get(host)
            return replace(state) if state is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, host: str) -> bool:
        with self._lock:
            return host in self._states

    def _notify(self, events: list[TransitionEvent]) -> list:
        # Called under the lock; failures are logged by the caller afterwards
        failures = []
        for event in events:
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as e:
                    failures.append((event, e))
        return failures

    def _log_failures(self, failures: list) -> None:
        for event, error in failures:
            logger.error(f"❌ Event listener failed for '{event.reason}'", exc_info=error)
