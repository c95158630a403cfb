"""Global hotkeys for recording and playback.

Defaults: F9 toggles recording, F10 plays the macro, F11 stops playback.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from tinymacro.errors import MacroError
from tinymacro.macros.engine import MacroEngine

logger = logging.getLogger(__name__)

DEFAULT_HOTKEYS: Dict[str, str] = {
    'record': 'f9',
    'play': 'f10',
    'stop': 'f11',
}


class GlobalHotkeys:
    """Maps global key combinations to engine actions."""

    def __init__(
        self,
        engine: MacroEngine,
        loop: asyncio.AbstractEventLoop,
        bindings: Optional[Dict[str, str]] = None,
    ) -> None:
        self.engine = engine
        self.loop = loop
        self.bindings = dict(bindings or DEFAULT_HOTKEYS)
        self._listener = None

    def start(self) -> None:
        """Register the hotkeys.

        Raises:
            RuntimeError: If pynput cannot be loaded on this host.
        """
        if self._listener is not None:
            return
        try:
            from pynput import keyboard
        except Exception as e:
            raise RuntimeError(f'pynput hotkeys unavailable: {e}') from e

        hotkeys = {
            f'<{key}>': (lambda action=action: self._submit(action))
            for action, key in self.bindings.items()
        }
        self._listener = keyboard.GlobalHotKeys(hotkeys)
        self._listener.daemon = True
        self._listener.start()
        logger.info('Hotkeys: ' + ', '.join(f'{k.upper()}={a}' for a, k in self.bindings.items()))

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    async def handle(self, action: str) -> None:
        """Run a hotkey action on the engine. Errors are logged."""
        try:
            if action == 'record':
                if self.engine.state.recording:
                    self.engine.stop_recording()
                else:
                    self.engine.start_recording()
            elif action == 'play':
                if not self.engine.state.playing and self.engine.macro:
                    await self.engine.play()
            elif action == 'stop':
                self.engine.stop_playback()
            else:
                logger.warning(f'Unknown hotkey action: {action}')
        except MacroError as e:
            logger.warning(f'Hotkey {action}: {e}')

    def _submit(self, action: str) -> None:
        try:
            asyncio.run_coroutine_threadsafe(self.handle(action), self.loop)
        except RuntimeError:
            logger.debug(f'Dropped hotkey {action}: loop closed')
