"""
Push channel for live transition events.

The registry of connected WebSocket clients is owned by one asyncio task.
Registration, removal and broadcast requests all reach that task through
its queue, so no other code touches the registry directly.
"""
import asyncio
import logging
from typing import Any, Optional

from .event_log import TransitionEvent

logger = logging.getLogger(__name__)

SEND_TIMEOUT = 5.0


class PushHub:
    def __init__(self, maxsize: int = 1000):
        self.maxsize = maxsize
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._clients: set = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.maxsize)
        self._task = asyncio.create_task(self._run(), name="push-hub")

    async def stop(self) -> None:
        if not self.running:
            return
        loop, self._loop = self._loop, None
        await self._queue.put(("stop", None))
        try:
            await asyncio.wait_for(self._task, timeout=SEND_TIMEOUT)
        except asyncio.TimeoutError:
            self._task.cancel()
        logger.info("🔌 Push hub stopped")

    async def register(self, websocket: Any) -> None:
        if self.running:
            await self._queue.put(("register", websocket))

    async def unregister(self, websocket: Any) -> None:
        if self.running:
            await self._queue.put(("unregister", websocket))

    def publish(self, event: TransitionEvent) -> None:
        """Queue an event for broadcast. Safe to call from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._enqueue, ("event", event.to_dict()))
        except RuntimeError:
            # loop closed between the check and the call
            pass

    def _enqueue(self, item: tuple) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            logger.warning(f"⚠️ Push queue full, dropping {item[0]} message")

    async def _run(self) -> None:
        while True:
            action, payload = await self._queue.get()
            if action == "stop":
                break
            if action == "register":
                self._clients.add(payload)
                logger.info(f"🔌 Push client connected ({len(self._clients)} total)")
            elif action == "unregister":
                self._clients.discard(payload)
                logger.info(f"🔌 Push client disconnected ({len(self._clients)} total)")
            elif action == "event":
                await self._broadcast(payload)
        self._clients.clear()

    async def _broadcast(self, message: dict) -> None:
        for websocket in list(self._clients):
            try:
                await asyncio.wait_for(websocket.send_json(message), timeout=SEND_TIMEOUT)
            except Exception as e:
                logger.warning(f"⚠️ Dropping push client after failed send: {e}")
                self._clients.discard(websocket)
