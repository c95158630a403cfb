"""Global input capture.

Listens to mouse and keyboard events with pynput and feeds them to the
engine while it is recording. pynput invokes callbacks on its own listener
threads, so events are handed to the event loop with
``call_soon_threadsafe`` and the engine is only touched from the loop.

The conversion helpers only rely on the attributes pynput objects expose
(``char``, ``name``), so they can be used and tested without a display.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Iterable, Optional, Tuple

from tinymacro.adapter.base import Button
from tinymacro.macros.engine import MacroEngine
from tinymacro.macros.models import MacroEvent

logger = logging.getLogger(__name__)


def key_to_name(key: Any) -> Optional[str]:
    """Return the literal character or symbolic name for a pynput key."""
    char = getattr(key, 'char', None)
    if char:
        return char
    name = getattr(key, 'name', None)
    if name:
        return name
    return None


def button_from_pynput(button: Any) -> Optional[Button]:
    """Map ``pynput.mouse.Button.left`` and friends to Button, else None."""
    name = getattr(button, 'name', None)
    if not name:
        return None
    try:
        return Button.parse(name)
    except ValueError:
        return None


class InputCapture:
    """Records global input into a MacroEngine.

    Args:
        engine: Engine receiving events.
        loop: Loop the engine runs on.
        move_min_interval_ms: Pointer moves closer together than this are
            dropped.
        ignore_keys: Key names never recorded, typically the hotkeys.
    """

    def __init__(
        self,
        engine: MacroEngine,
        loop: asyncio.AbstractEventLoop,
        move_min_interval_ms: int = 10,
        ignore_keys: Iterable[str] = (),
    ) -> None:
        self.engine = engine
        self.loop = loop
        self.move_min_interval = move_min_interval_ms / 1000.0
        self.ignore_keys = {k.lower() for k in ignore_keys}
        self._last_move_t = 0.0
        self._last_pos: Optional[Tuple[int, int]] = None
        self._mouse_listener = None
        self._keyboard_listener = None

    @property
    def active(self) -> bool:
        return self._mouse_listener is not None

    def start(self) -> None:
        """Start the pynput listeners.

        Raises:
            RuntimeError: If pynput cannot be loaded on this host.
        """
        if self.active:
            return
        try:
            from pynput import keyboard, mouse
        except Exception as e:
            raise RuntimeError(f'pynput listeners unavailable: {e}') from e

        self._mouse_listener = mouse.Listener(on_move=self.on_move, on_click=self.on_click)
        self._keyboard_listener = keyboard.Listener(on_press=self.on_press)
        self._mouse_listener.daemon = True
        self._keyboard_listener.daemon = True
        self._mouse_listener.start()
        self._keyboard_listener.start()
        logger.info('Input capture started')

    def stop(self) -> None:
        for listener in (self._mouse_listener, self._keyboard_listener):
            if listener is not None:
                listener.stop()
        if self.active:
            logger.info('Input capture stopped')
        self._mouse_listener = None
        self._keyboard_listener = None

    # ---- listener callbacks (pynput threads) ----

    def on_press(self, key: Any) -> None:
        if not self.engine.state.recording:
            return
        name = key_to_name(key)
        if name is None or name.lower() in self.ignore_keys:
            return
        self._submit(MacroEvent.keypress(name))

    def on_click(self, x: int, y: int, button: Any, pressed: bool) -> None:
        if not pressed or not self.engine.state.recording:
            return
        mapped = button_from_pynput(button)
        if mapped is None:
            return
        pos = (int(x), int(y))
        if self._last_pos != pos:
            self._last_pos = pos
            self._submit(MacroEvent.move(*pos))
        self._submit(MacroEvent.click(mapped))

    def on_move(self, x: int, y: int) -> None:
        if not self.engine.state.recording:
            return
        t = time.monotonic()
        pos = (int(x), int(y))
        if (t - self._last_move_t) < self.move_min_interval or self._last_pos == pos:
            return
        self._last_move_t = t
        self._last_pos = pos
        self._submit(MacroEvent.move(*pos))

    def _submit(self, event: MacroEvent) -> None:
        try:
            self.loop.call_soon_threadsafe(self.engine.record_event, event)
        except RuntimeError:
            # Loop already closed during shutdown
            logger.debug(f'Dropped {event.describe()}: loop closed')
