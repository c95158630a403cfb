"""Typed keys for objects stored on the aiohttp application."""
from __future__ import annotations

import asyncio
from pathlib import Path

from aiohttp import web

from tinymacro.session import Session

from .broadcasting import Broadcaster
from .commands import CommandDispatcher

session_key = web.AppKey('session', Session)
dispatcher_key = web.AppKey('dispatcher', CommandDispatcher)
broadcaster_key = web.AppKey('broadcaster', Broadcaster)
macros_dir_key = web.AppKey('macros_dir', Path)
shutdown_event_key = web.AppKey('shutdown_event', asyncio.Event)
