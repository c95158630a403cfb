"""HTTP and WebSocket handlers for the command/status server.

The handlers are organized by functionality:

- websocket: real-time commands and status push
- control: command endpoint, status, mouse position, logs, shutdown
- macros: current macro and the macro file library
"""
from __future__ import annotations

from .control import command, mouse_position, recent_logs, shutdown, status
from .macros import (
    delete_macro,
    get_current_macro,
    get_macro,
    list_macros,
    load_macro,
    replace_current_macro,
    save_macro,
)
from .websocket import websocket_handler

__all__ = [
    'websocket_handler',
    'command',
    'status',
    'mouse_position',
    'recent_logs',
    'shutdown',
    'get_current_macro',
    'replace_current_macro',
    'list_macros',
    'get_macro',
    'save_macro',
    'load_macro',
    'delete_macro',
]
