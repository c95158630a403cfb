"""Tests for status/log fan-out to WebSocket clients."""
from __future__ import annotations

import asyncio
import json
import logging

from tinymacro.webapp.broadcasting import Broadcaster, BroadcastLogHandler


class FakeSocket:
    def __init__(self, fail=False):
        self.closed = False
        self.fail = fail
        self.sent = []

    async def send_str(self, data):
        if self.fail:
            raise ConnectionResetError('gone')
        self.sent.append(json.loads(data))


def test_recent_logs_keep_the_last_ten():
    broadcaster = Broadcaster()
    for i in range(12):
        broadcaster.log(f'message {i}')

    logs = broadcaster.get_recent_logs()
    assert len(logs) == 10
    assert logs[0] == {'type': 'log', 'message': 'message 2', 'level': 'info'}


async def test_messages_reach_every_connection():
    broadcaster = Broadcaster()
    good, broken = FakeSocket(), FakeSocket(fail=True)
    broadcaster.connections.update({good, broken})
    broadcaster.start()

    broadcaster.status_listener('recording-status', {'recording': True})
    await asyncio.sleep(0.01)
    await broadcaster.stop()

    assert good.sent == [{'type': 'recording-status', 'data': {'recording': True}}]
    assert broken not in broadcaster.connections


async def test_log_handler_forwards_records():
    broadcaster = Broadcaster()
    handler = BroadcastLogHandler(broadcaster, asyncio.get_running_loop())
    logger = logging.getLogger('tinymacro.test_broadcasting')
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        logger.warning('adapter unavailable')
        await asyncio.sleep(0)
    finally:
        logger.removeHandler(handler)

    assert broadcaster.get_recent_logs() == [
        {'type': 'log', 'message': 'adapter unavailable', 'level': 'warning'},
    ]
