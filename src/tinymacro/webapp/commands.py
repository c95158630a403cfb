"""Command interface between the presentation layer and the session.

Commands arrive as ``(name, data)`` pairs from the WebSocket or the HTTP
API. Most have no reply; queries return a message dict that the transport
sends back to the caller only.

Supported commands:
- start-recording, stop-recording, play-macro, stop-playback, clear-macro
- save-macro (macro array), load-macro -> macro-loaded
- add-macro-event (event without delay)
- start-clicker {interval, button}, stop-clicker
- start-key-presser {interval, key}, stop-key-presser
- get-mouse-position -> mouse-position
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from tinymacro.errors import MacroError, UnknownCommandError
from tinymacro.macros.engine import MACRO_LOADED
from tinymacro.macros.serialization import event_from_dict
from tinymacro.session import Session
from tinymacro.timers.repeater import Clicker, KeyPresser

logger = logging.getLogger(__name__)

Reply = Optional[Dict[str, Any]]
Handler = Callable[[Any], Awaitable[Reply]]


def error_message(exc: Exception) -> Dict[str, Any]:
    """Build the error message sent to clients for a failed command."""
    kind = exc.kind if isinstance(exc, MacroError) else 'InvalidArgument'
    return {'type': 'error', 'error': kind, 'message': str(exc)}


class CommandDispatcher:
    """Routes named commands to the session's engine and timers."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._handlers: Dict[str, Handler] = {
            'start-recording': self._start_recording,
            'stop-recording': self._stop_recording,
            'play-macro': self._play_macro,
            'stop-playback': self._stop_playback,
            'clear-macro': self._clear_macro,
            'save-macro': self._save_macro,
            'load-macro': self._load_macro,
            'add-macro-event': self._add_macro_event,
            'start-clicker': self._start_clicker,
            'stop-clicker': self._stop_clicker,
            'start-key-presser': self._start_key_presser,
            'stop-key-presser': self._stop_key_presser,
            'get-mouse-position': self._get_mouse_position,
        }

    @property
    def commands(self):
        return sorted(self._handlers)

    async def dispatch(self, command: Any, data: Any = None) -> Reply:
        """Run a command and return its reply, if any.

        Raises:
            UnknownCommandError: If ``command`` is not supported.
            MacroError: For engine and timer errors.
            ValueError: For malformed arguments.
        """
        handler = self._handlers.get(command) if isinstance(command, str) else None
        if handler is None:
            raise UnknownCommandError(f'Unknown command: {command!r}')
        logger.debug(f'command: {command}')
        return await handler(data)

    # ---- engine ----

    async def _start_recording(self, data: Any) -> Reply:
        self.session.engine.start_recording()

    async def _stop_recording(self, data: Any) -> Reply:
        self.session.engine.stop_recording()

    async def _play_macro(self, data: Any) -> Reply:
        await self.session.engine.play()

    async def _stop_playback(self, data: Any) -> Reply:
        self.session.engine.stop_playback()

    async def _clear_macro(self, data: Any) -> Reply:
        self.session.engine.clear_macro()

    async def _save_macro(self, data: Any) -> Reply:
        self.session.engine.save_macro(data)

    async def _load_macro(self, data: Any) -> Reply:
        return {'type': MACRO_LOADED, 'data': self.session.engine.to_list()}

    async def _add_macro_event(self, data: Any) -> Reply:
        event = event_from_dict(data, require_delay=False)
        self.session.engine.record_event(event)

    # ---- timers ----

    async def _start_clicker(self, data: Any) -> Reply:
        await self.session.clicker.start(Clicker.parse_config(data))

    async def _stop_clicker(self, data: Any) -> Reply:
        await self.session.clicker.stop()

    async def _start_key_presser(self, data: Any) -> Reply:
        await self.session.key_presser.start(KeyPresser.parse_config(data))

    async def _stop_key_presser(self, data: Any) -> Reply:
        await self.session.key_presser.stop()

    # ---- queries ----

    async def _get_mouse_position(self, data: Any) -> Reply:
        return {'type': 'mouse-position', 'data': await self.session.get_mouse_position()}
