"""Exception types shared by the engine, timers and web layer.

Every error carries a ``kind`` string. The web layer sends that string to
clients so the presentation can react without parsing messages.
"""
from __future__ import annotations

from typing import Optional


class MacroError(Exception):
    """Base class for all tinymacro errors."""

    kind = 'MacroError'


class AlreadyRecordingError(MacroError):
    """Raised when recording is started while already recording."""

    kind = 'AlreadyRecording'


class EmptyMacroError(MacroError):
    """Raised when playback is requested for a macro with no events."""

    kind = 'EmptyMacro'


class EngineBusyError(MacroError):
    """Raised when a command conflicts with an active recording or playback."""

    kind = 'EngineBusy'


class InvalidIntervalError(MacroError, ValueError):
    """Raised when a timer interval is below the allowed minimum."""

    kind = 'InvalidInterval'


class InjectionError(MacroError):
    """Wraps a failure raised by an input adapter for one action."""

    kind = 'InjectionFailure'

    def __init__(self, action: str, cause: Optional[BaseException] = None):
        self.action = action
        self.cause = cause
        detail = f': {cause}' if cause is not None else ''
        super().__init__(f'{action} failed{detail}')


class DeserializationError(MacroError, ValueError):
    """Raised when persisted macro data cannot be decoded."""

    kind = 'DeserializationFailure'

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        if index is not None:
            message = f'event {index}: {message}'
        super().__init__(message)


class UnknownCommandError(MacroError):
    """Raised for a command name the command interface does not know."""

    kind = 'UnknownCommand'
