"""Control and status API handlers.

Example:
    # Register control endpoints
    app.router.add_post('/api/command', command)
    app.router.add_get('/api/status', status)
"""
from __future__ import annotations

from aiohttp import web

from tinymacro.errors import MacroError

from ..commands import error_message
from ..keys import broadcaster_key, dispatcher_key, session_key, shutdown_event_key


async def command(request: web.Request) -> web.Response:
    """Run a command sent as JSON ``{"command": ..., "data": ...}``.

    Returns:
        The command's reply, or ``{"status": "ok"}`` when it has none.
        HTTP 400 with an error message for rejected commands.
    """
    try:
        data = await request.json()
    except ValueError:
        return web.json_response(
            {'type': 'error', 'error': 'InvalidMessage', 'message': 'Invalid JSON body'}, status=400
        )
    if not isinstance(data, dict) or not data.get('command'):
        return web.json_response(
            {'type': 'error', 'error': 'InvalidMessage', 'message': 'command required'}, status=400
        )

    dispatcher = request.app[dispatcher_key]
    try:
        reply = await dispatcher.dispatch(data['command'], data.get('data'))
    except (MacroError, ValueError) as e:
        return web.json_response(error_message(e), status=400)

    return web.json_response(reply if reply is not None else {'status': 'ok', 'command': data['command']})


async def status(request: web.Request) -> web.Response:
    """Engine, timer and hook state."""
    return web.json_response(request.app[session_key].status())


async def mouse_position(request: web.Request) -> web.Response:
    """Report the pointer position.

    Returns:
        JSON ``{x, y}``. Both are 0 when the adapter cannot read the
        position.
    """
    position = await request.app[session_key].get_mouse_position()
    return web.json_response(position)


async def recent_logs(request: web.Request) -> web.Response:
    """Return the buffered log lines as ``{logs: [...]}``, oldest first."""
    return web.json_response({'logs': request.app[broadcaster_key].get_recent_logs()})


async def shutdown(request: web.Request) -> web.Response:
    """Stop everything and ask the server to exit."""
    request.app[shutdown_event_key].set()
    return web.json_response({
        'status': 'ok',
        'message': 'Shutting down',
    })
