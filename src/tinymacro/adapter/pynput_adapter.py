"""pynput adapter for desktop keyboard and mouse injection.

This module drives the host's real input queue through pynput's mouse and
keyboard controllers. pynput calls are blocking, so each one runs on a
single worker thread: the event loop stays free while a call is in flight
and actions still reach the OS in the order they were issued.

Example:
    Basic usage::

        adapter = PynputAdapter()
        await adapter.connect()
        await adapter.press_key("enter")
        await adapter.click(Button.RIGHT)
        adapter.close()

Note:
    pynput needs a display server (X11, Wayland with XWayland, macOS
    accessibility permission, or a Windows desktop). ``connect`` raises
    RuntimeError when the backend cannot be loaded.
"""
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional, Tuple

from .base import BaseAdapter, Button

logger = logging.getLogger(__name__)

# Names browsers and other toolkits use for keys pynput calls differently
KEY_ALIASES = {
    'return': 'enter',
    'escape': 'esc',
    'control': 'ctrl',
    'spacebar': 'space',
    'del': 'delete',
    'arrowup': 'up',
    'arrowdown': 'down',
    'arrowleft': 'left',
    'arrowright': 'right',
    'meta': 'cmd',
    'super': 'cmd',
    'win': 'cmd',
    'pgup': 'page_up',
    'pageup': 'page_up',
    'pgdn': 'page_down',
    'pagedown': 'page_down',
}


def normalize_key_name(name: str) -> str:
    """Map a symbolic key name to pynput's ``Key`` member naming."""
    lowered = name.strip().lower().replace(' ', '_')
    return KEY_ALIASES.get(lowered, lowered)


class PynputAdapter(BaseAdapter):
    """Adapter backed by ``pynput.mouse.Controller`` and ``pynput.keyboard.Controller``."""

    name = 'pynput'

    def __init__(self) -> None:
        super().__init__()
        self._mouse = None
        self._keyboard = None
        self._key_enum = None
        self._buttons = {}
        self._executor: Optional[ThreadPoolExecutor] = None

    async def connect(self) -> None:
        if self._executor is not None:
            return
        try:
            from pynput import keyboard, mouse
        except Exception as e:
            # pynput raises ImportError subclasses or backend errors when no display is available
            raise RuntimeError(f'pynput backend unavailable: {e}') from e

        self._mouse = mouse.Controller()
        self._keyboard = keyboard.Controller()
        self._key_enum = keyboard.Key
        self._buttons = {
            Button.LEFT: mouse.Button.left,
            Button.RIGHT: mouse.Button.right,
            Button.MIDDLE: mouse.Button.middle,
        }
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='tinymacro-input')
        logger.info('pynput adapter ready')

    def resolve_key(self, key: str) -> Any:
        """Return a pynput key for ``key`` or None if it should be typed as text."""
        if len(key) == 1:
            return key
        try:
            return self._key_enum[normalize_key_name(key)]
        except KeyError:
            return None

    async def press_key(self, key: str) -> None:
        resolved = self.resolve_key(key)
        if resolved is None:
            await self._call(self._keyboard.type, key)
        else:
            await self._call(self._keyboard.tap, resolved)

    async def click(self, button: Button) -> None:
        await self._call(self._mouse.click, self._buttons[button])

    async def move(self, x: int, y: int) -> None:
        def _set_position() -> None:
            self._mouse.position = (x, y)

        await self._call(_set_position)

    async def position(self) -> Tuple[int, int]:
        x, y = await self._call(lambda: self._mouse.position)
        return int(x), int(y)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    async def _call(self, func: Callable, *args: Any) -> Any:
        if self._executor is None:
            raise RuntimeError('Adapter is not connected')
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)
