"""
Append-only event trail of host transitions and service lifecycle records.

Producers call EventLog.append(), which only enqueues. A single writer
thread drains the queue into the configured sinks, so a slow or broken
sink never stalls liveness tracking.
"""
import logging
import os
import queue
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventKind(str, Enum):
    ADDED = "added"
    UP = "up"
    DOWN = "down"
    EVICTED = "evicted"
    LIFECYCLE = "lifecycle"


@dataclass(frozen=True)
class TransitionEvent:
    start: datetime
    end: datetime
    reason: str
    kind: EventKind = EventKind.LIFECYCLE
    host: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "host": self.host,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration_seconds,
            "reason": self.reason,
        }


def lifecycle_event(reason: str, now: Optional[datetime] = None) -> TransitionEvent:
    """Build a zero-length record for a service lifecycle message."""
    now = now or utcnow()
    return TransitionEvent(start=now, end=now, reason=reason)


class EventSink(Protocol):
    def write(self, event: TransitionEvent) -> None:
        ...


class FileSink:
    """Appends one text line per event to a log file."""

    def __init__(self, path: str):
        self.path = path

    def write(self, event: TransitionEvent) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, mode=0o700, exist_ok=True)
        line = f"Start: {event.start.isoformat()}, End: {event.end.isoformat()}, Reason: {event.reason}\n"
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(line)


class DatabaseSink:
    """Stores events as rows of the transition_events table."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def write(self, event: TransitionEvent) -> None:
        from app.models.transition_log import TransitionLog

        db = self.session_factory()
        try:
            db.add(TransitionLog(
                host=event.host,
                kind=event.kind.value,
                start_time=event.start,
                end_time=event.end,
                duration_seconds=event.duration_seconds,
                reason=event.reason,
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class EventLog:
    """
    Best-effort, non-blocking event trail.

    append() never raises and never blocks. When the bounded queue is full
    the oldest pending event is discarded to make room for the new one.
    """

    def __init__(self, sinks: Optional[Iterable[EventSink]] = None, maxsize: int = 1000):
        self._sinks = list(sinks or [])
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._put_lock = threading.Lock()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.poll_interval = 0.2
        self.dropped = 0
        self._dropped_reported = 0

    @property
    def sinks(self) -> list:
        return list(self._sinks)

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def append(self, event: TransitionEvent) -> None:
        try:
            with self._put_lock:
                try:
                    self._queue.put_nowait(event)
                    return
                except queue.Full:
                    pass

                try:
                    self._queue.get_nowait()
                    self._queue.task_done()
                except queue.Empty:
                    pass
                self.dropped += 1
                self._queue.put_nowait(event)
        except Exception:
            # Callers hold their own locks here, so the loss is only counted
            # and reported later by the writer
            self.dropped += 1

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="event-log-writer", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Write whatever is queued, then stop the writer thread."""
        if not self.running:
            self._drain()
            return
        self._stopping.set()
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("⚠️ Event log writer still running after stop timeout")
        else:
            self._thread = None

    def flush(self, timeout: float = 5.0) -> bool:
        """Block until every queued event has been handed to the sinks."""
        if not self.running:
            self._drain()
            return True

        deadline = time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def _run(self) -> None:
        # Keeps writing until a stop is requested and the queue is empty
        while True:
            try:
                item = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._stopping.is_set():
                    return
                continue
            try:
                self._write(item)
            finally:
                self._queue.task_done()

    def _drain(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                self._write(item)
            finally:
                self._queue.task_done()

    def _report_drops(self) -> None:
        dropped = self.dropped
        if dropped > self._dropped_reported:
            logger.warning(f"⚠️ Event queue full, dropped {dropped - self._dropped_reported} oldest event(s) ({dropped} so far)")
            self._dropped_reported = dropped

    def _write(self, event: TransitionEvent) -> None:
        self._report_drops()
        for sink in self._sinks:
            try:
                sink.write(event)
            except Exception:
                logger.exception(f"❌ Failed to record event '{event.reason}' to {type(sink).__name__}")
