"""WebSocket and HTTP command/status server."""
from __future__ import annotations

from .server import create_app, start_server

__all__ = ['create_app', 'start_server']
