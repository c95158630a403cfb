"""Macro API handlers.

This module provides HTTP endpoints for the engine's current macro and for
a small library of macro files stored in the configured macros directory.

Example:
    # Register macro endpoints
    app.router.add_get('/api/macros', list_macros)
    app.router.add_post('/api/macros/{name}/load', load_macro)
"""
from __future__ import annotations

import logging
import pathlib
from typing import Optional

from aiohttp import web

from tinymacro.errors import MacroError
from tinymacro.macros import serialization

from ..commands import error_message
from ..keys import macros_dir_key, session_key

logger = logging.getLogger(__name__)

MACRO_SUFFIX = '.json'


def _safe_name(name: Optional[str]) -> Optional[str]:
    """Reduce ``name`` to a bare file name ending in ``.json``, or None."""
    if not isinstance(name, str) or not name.strip():
        return None
    # Sanitize path to prevent directory traversal
    safe = pathlib.Path(name.strip()).name
    if not safe or safe.startswith('.'):
        return None
    if not safe.endswith(MACRO_SUFFIX):
        safe += MACRO_SUFFIX
    return safe


def _macro_path(request: web.Request, name: Optional[str]) -> Optional[pathlib.Path]:
    safe = _safe_name(name)
    if safe is None:
        return None
    return request.app[macros_dir_key] / safe


# ===== Current macro =====

async def get_current_macro(request: web.Request) -> web.Response:
    """Return the engine's macro as the persisted JSON array."""
    return web.json_response(request.app[session_key].engine.to_list())


async def replace_current_macro(request: web.Request) -> web.Response:
    """Replace the engine's macro with the JSON array in the body."""
    try:
        data = await request.json()
    except ValueError:
        return web.json_response(
            {'type': 'error', 'error': 'DeserializationFailure', 'message': 'Invalid JSON body'}, status=400
        )
    engine = request.app[session_key].engine
    try:
        engine.save_macro(data)
    except MacroError as e:
        return web.json_response(error_message(e), status=400)
    return web.json_response({'status': 'ok', 'events': len(engine.macro)})


# ===== Macro files =====

async def list_macros(request: web.Request) -> web.Response:
    """List macro files, sorted by name."""
    macros_dir = request.app[macros_dir_key]
    if not macros_dir.exists():
        return web.json_response([])

    macros = []
    for file in sorted(macros_dir.glob(f'*{MACRO_SUFFIX}')):
        stat = file.stat()
        macros.append({'name': file.name, 'size': stat.st_size, 'modified': stat.st_mtime})
    return web.json_response(macros)


async def get_macro(request: web.Request) -> web.Response:
    """Return the decoded contents of a macro file."""
    name = request.match_info['name']
    macro_path = _macro_path(request, name)
    if macro_path is None or not macro_path.exists():
        return web.Response(status=404, text=f'Macro "{name}" not found')

    try:
        events = serialization.load_file(macro_path)
    except MacroError as e:
        return web.json_response(error_message(e), status=422)
    return web.json_response(serialization.to_list(events))


async def save_macro(request: web.Request) -> web.Response:
    """Save the engine's current macro to a file.

    Expects JSON body with:
    - name: file name for the macro (``.json`` is appended if missing)
    - overwrite: optional, replace an existing file
    """
    try:
        data = await request.json()
    except ValueError:
        return web.Response(status=400, text='Invalid JSON body')
    if not isinstance(data, dict):
        return web.Response(status=400, text='Invalid JSON body')

    macro_path = _macro_path(request, data.get('name'))
    if macro_path is None:
        return web.Response(status=400, text='name must be a non-empty file name')
    if macro_path.exists() and not data.get('overwrite'):
        return web.Response(status=409, text=f'Macro "{macro_path.name}" already exists')

    engine = request.app[session_key].engine
    if not engine.macro:
        return web.json_response(
            {'type': 'error', 'error': 'EmptyMacro', 'message': 'No macro to save'}, status=400
        )

    try:
        engine.save_to_file(macro_path)
    except OSError as e:
        return web.Response(status=500, text=f'Error saving macro: {e}')
    return web.json_response({'status': 'ok', 'name': macro_path.name}, status=201)


async def load_macro(request: web.Request) -> web.Response:
    """Load a macro file into the engine."""
    name = request.match_info['name']
    macro_path = _macro_path(request, name)
    if macro_path is None or not macro_path.exists():
        return web.Response(status=404, text=f'Macro "{name}" not found')

    try:
        events = request.app[session_key].engine.load_from_file(macro_path)
    except MacroError as e:
        return web.json_response(error_message(e), status=400)
    return web.json_response({'status': 'ok', 'name': macro_path.name, 'events': len(events)})


async def delete_macro(request: web.Request) -> web.Response:
    """Delete a macro file."""
    name = request.match_info['name']
    macro_path = _macro_path(request, name)
    if macro_path is None or not macro_path.exists():
        return web.Response(status=404, text=f'Macro "{name}" not found')

    macro_path.unlink()
    logger.info(f'Deleted macro: {macro_path.name}')
    return web.json_response({'status': 'ok', 'message': f'Macro "{macro_path.name}" deleted'})
