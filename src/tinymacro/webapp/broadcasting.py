"""Message broadcasting to WebSocket clients.

Status notifications from the engine and timers, and log records from the
``tinymacro`` logger, are queued and sent to every connected client by a
single background task. The last few log messages are kept so new clients
can catch up.
"""
from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Set

from aiohttp import web

RECENT_LOG_SIZE = 10


class Broadcaster:
    """Fans messages out to all connected WebSocket clients."""

    def __init__(self, max_recent: int = RECENT_LOG_SIZE) -> None:
        self.connections: Set[web.WebSocketResponse] = set()
        self.recent_logs: Deque[Dict[str, Any]] = deque(maxlen=max_recent)
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._queue = asyncio.Queue()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def status_listener(self, status: str, payload: Any) -> None:
        """Engine/timer listener: push ``{'type': status, 'data': payload}``."""
        self.publish({'type': status, 'data': payload})

    def log(self, message: str, level: str = 'info') -> None:
        entry = {'type': 'log', 'message': message, 'level': level}
        self.recent_logs.append(entry)
        self.publish(entry)

    def publish(self, message: Dict[str, Any]) -> None:
        if self._queue is None:
            return
        self._queue.put_nowait(message)

    def get_recent_logs(self) -> List[Dict[str, Any]]:
        return list(self.recent_logs)

    async def send_all(self, message: Dict[str, Any]) -> None:
        json_msg = json.dumps(message)
        for ws in list(self.connections):
            try:
                if ws.closed:
                    self.connections.discard(ws)
                else:
                    await ws.send_str(json_msg)
            except Exception:
                # Remove broken connections
                self.connections.discard(ws)

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            await self.send_all(message)


class BroadcastLogHandler(logging.Handler):
    """Logging handler that forwards records to a Broadcaster.

    Records may come from listener or executor threads, so they are handed
    to the loop with ``call_soon_threadsafe``.
    """

    def __init__(self, broadcaster: Broadcaster, loop: asyncio.AbstractEventLoop,
                 level: int = logging.INFO) -> None:
        super().__init__(level)
        self.broadcaster = broadcaster
        self.loop = loop
        self.setFormatter(logging.Formatter('%(message)s'))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            self.loop.call_soon_threadsafe(self.broadcaster.log, message, record.levelname.lower())
        except RuntimeError:
            # Loop closed during shutdown
            pass
        except Exception:
            self.handleError(record)
