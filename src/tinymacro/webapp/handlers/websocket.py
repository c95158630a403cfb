"""WebSocket handler for real-time command and status traffic.

Clients send ``{"command": <name>, "data": <argument>}``. Replies to
queries and errors go back to the sender only; status notifications and
log messages are broadcast to every client.

Example:
    # Set up WebSocket handler in aiohttp app
    app.router.add_get('/ws', websocket_handler)
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from aiohttp import WSMsgType, web

from tinymacro.errors import MacroError

from ..commands import CommandDispatcher, error_message
from ..keys import broadcaster_key, dispatcher_key, session_key

logger = logging.getLogger(__name__)


async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
    """Handle a WebSocket connection.

    On connect the client receives a ``connected`` status, the current
    recording and playback flags, and the buffered recent logs.
    """
    ws = web.WebSocketResponse()
    await ws.prepare(request)

    app = request.app
    broadcaster = app[broadcaster_key]
    dispatcher = app[dispatcher_key]
    engine = app[session_key].engine

    broadcaster.connections.add(ws)

    await _send_message(ws, {'type': 'status', 'msg': 'connected'})
    await _send_message(ws, {'type': 'recording-status', 'data': {'recording': engine.state.recording}})
    await _send_message(ws, {'type': 'playback-status', 'data': {'playing': engine.state.playing}})
    for entry in broadcaster.get_recent_logs():
        await _send_message(ws, entry)

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                await _handle_websocket_message(ws, msg.data, dispatcher)
            elif msg.type == WSMsgType.ERROR:
                logger.warning(f'WebSocket closed with exception {ws.exception()}')
                break
    finally:
        broadcaster.connections.discard(ws)

    return ws


async def _send_message(ws: web.WebSocketResponse, data: Dict[str, Any]) -> None:
    try:
        await ws.send_str(json.dumps(data))
    except Exception:
        # Connection may be closed, ignore send errors
        pass


async def _handle_websocket_message(
    ws: web.WebSocketResponse,
    raw: str,
    dispatcher: CommandDispatcher,
) -> None:
    try:
        data = json.loads(raw)
    except ValueError:
        await _send_message(ws, {'type': 'error', 'error': 'InvalidMessage', 'message': 'Message must be JSON'})
        return
    if not isinstance(data, dict):
        await _send_message(ws, {'type': 'error', 'error': 'InvalidMessage', 'message': 'Message must be an object'})
        return

    command = data.get('command')
    try:
        reply = await dispatcher.dispatch(command, data.get('data'))
    except (MacroError, ValueError) as e:
        logger.info(f'Command {command} rejected: {e}')
        await _send_message(ws, error_message(e))
        return

    if reply is not None:
        await _send_message(ws, reply)
