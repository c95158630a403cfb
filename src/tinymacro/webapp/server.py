"""Launcher for the command/status server.

``create_app`` wires a Session into an aiohttp application; ``start_server``
creates the Session from Settings, serves the app and waits until a
shutdown is requested.
"""
from __future__ import annotations

import asyncio
import logging

from aiohttp import WSCloseCode, web

from tinymacro.config import Settings
from tinymacro.session import Session

from . import handlers
from .broadcasting import Broadcaster, BroadcastLogHandler
from .commands import CommandDispatcher
from .keys import (
    broadcaster_key,
    dispatcher_key,
    macros_dir_key,
    session_key,
    shutdown_event_key,
)

logger = logging.getLogger(__name__)

log_handler_key = web.AppKey('log_handler', BroadcastLogHandler)


def create_app(session: Session, settings: Settings) -> web.Application:
    """Build the aiohttp application around an existing session.

    The session is closed when the application is cleaned up.
    """
    app = web.Application()
    broadcaster = Broadcaster()
    session.add_listener(broadcaster.status_listener)

    app[session_key] = session
    app[dispatcher_key] = CommandDispatcher(session)
    app[broadcaster_key] = broadcaster
    app[macros_dir_key] = settings.macros_dir
    app[shutdown_event_key] = asyncio.Event()

    app.router.add_get('/ws', handlers.websocket_handler)
    app.router.add_post('/api/command', handlers.command)
    app.router.add_get('/api/status', handlers.status)
    app.router.add_get('/api/mouse-position', handlers.mouse_position)
    app.router.add_get('/api/logs/recent', handlers.recent_logs)
    app.router.add_post('/api/shutdown', handlers.shutdown)
    app.router.add_get('/api/macro', handlers.get_current_macro)
    app.router.add_put('/api/macro', handlers.replace_current_macro)
    app.router.add_get('/api/macros', handlers.list_macros)
    app.router.add_post('/api/macros', handlers.save_macro)
    app.router.add_get('/api/macros/{name}', handlers.get_macro)
    app.router.add_delete('/api/macros/{name}', handlers.delete_macro)
    app.router.add_post('/api/macros/{name}/load', handlers.load_macro)

    app.on_startup.append(_on_startup)
    app.on_shutdown.append(_on_shutdown)
    app.on_cleanup.append(_on_cleanup)
    return app


async def _on_startup(app: web.Application) -> None:
    broadcaster = app[broadcaster_key]
    broadcaster.start()

    log_handler = BroadcastLogHandler(broadcaster, asyncio.get_running_loop())
    logging.getLogger('tinymacro').addHandler(log_handler)
    app[log_handler_key] = log_handler

    app[macros_dir_key].mkdir(parents=True, exist_ok=True)


async def _on_shutdown(app: web.Application) -> None:
    for ws in list(app[broadcaster_key].connections):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b'Server shutdown')


async def _on_cleanup(app: web.Application) -> None:
    app[session_key].remove_listener(app[broadcaster_key].status_listener)
    logging.getLogger('tinymacro').removeHandler(app[log_handler_key])
    await app[broadcaster_key].stop()
    await app[session_key].close()


async def start_server(settings: Settings) -> None:
    """Serve until ``POST /api/shutdown`` or cancellation."""
    session = await Session.create(settings)
    app = create_app(session, settings)

    app_runner = web.AppRunner(app)
    await app_runner.setup()
    site = web.TCPSite(app_runner, host=settings.host, port=settings.port)
    await site.start()
    logger.info(f'Command server running on http://{settings.host}:{settings.port} '
                f'(adapter: {session.adapter.name})')
    try:
        await app[shutdown_event_key].wait()
    finally:
        await app_runner.cleanup()
