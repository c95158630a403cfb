"""Process-wide state owned in one place.

A Session is created once per process and handed to the web app or CLI.
It owns the adapter, the macro engine, both repeating timers and, when
enabled, the global input capture and hotkeys.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from tinymacro.adapter.base import BaseAdapter
from tinymacro.adapter.factory import create_adapter
from tinymacro.capture.hotkeys import GlobalHotkeys
from tinymacro.capture.listener import InputCapture
from tinymacro.config import Settings
from tinymacro.macros.engine import MacroEngine
from tinymacro.timers.repeater import Clicker, KeyPresser

logger = logging.getLogger(__name__)


class Session:
    """Engine, timers and input hooks sharing one adapter."""

    def __init__(self, adapter: BaseAdapter, engine: Optional[MacroEngine] = None) -> None:
        self.adapter = adapter
        self.engine = engine or MacroEngine(adapter)
        self.clicker = Clicker(adapter)
        self.key_presser = KeyPresser(adapter)
        self.capture: Optional[InputCapture] = None
        self.hotkeys: Optional[GlobalHotkeys] = None
        self._closed = False

    @classmethod
    async def create(cls, settings: Settings) -> 'Session':
        """Create the adapter and session, then start hooks enabled in ``settings``.

        Hooks that cannot start (no display, missing permission) are logged
        and skipped; the session still works through the command interface.
        """
        adapter = await create_adapter(settings.adapter)
        session = cls(adapter)
        loop = asyncio.get_running_loop()

        if settings.hotkeys:
            hotkeys = GlobalHotkeys(session.engine, loop, settings.hotkey_bindings)
            try:
                hotkeys.start()
                session.hotkeys = hotkeys
            except RuntimeError as e:
                logger.warning(f'Global hotkeys disabled: {e}')

        if settings.capture:
            ignore = settings.hotkey_bindings.values() if settings.hotkeys else ()
            capture = InputCapture(session.engine, loop, settings.move_interval_ms, ignore_keys=ignore)
            try:
                capture.start()
                session.capture = capture
            except RuntimeError as e:
                logger.warning(f'Global input capture disabled: {e}')

        return session

    def add_listener(self, listener: Callable[[str, Any], None]) -> None:
        """Subscribe to engine and timer status notifications."""
        self.engine.add_listener(listener)
        self.clicker.add_listener(listener)
        self.key_presser.add_listener(listener)

    def remove_listener(self, listener: Callable[[str, Any], None]) -> None:
        """Undo add_listener. Unknown listeners are ignored."""
        self.engine.remove_listener(listener)
        self.clicker.remove_listener(listener)
        self.key_presser.remove_listener(listener)

    async def get_mouse_position(self) -> dict:
        """Current pointer position as ``{x, y}``, or the origin on failure."""
        try:
            x, y = await self.adapter.position()
        except Exception as e:
            logger.error(f'Error getting mouse position: {e}')
            return {'x': 0, 'y': 0}
        return {'x': x, 'y': y}

    def status(self) -> dict:
        return {
            'adapter': self.adapter.name,
            'engine': self.engine.status(),
            'clicker': self.clicker.status(),
            'key_presser': self.key_presser.status(),
            'capture': self.capture is not None,
            'hotkeys': self.hotkeys is not None,
        }

    async def close(self) -> None:
        """Stop everything and release input hooks. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self.hotkeys is not None:
            self.hotkeys.stop()
        if self.capture is not None:
            self.capture.stop()
        await self.clicker.stop()
        await self.key_presser.stop()
        await self.engine.close()
        self.adapter.close()
        logger.info('Session closed')
