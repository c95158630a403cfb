"""Macro recording and playback engine.

This module provides the MacroEngine class that owns the recorded macro,
the recording state and the playback task. It is driven from a single
asyncio event loop; nothing here takes a lock.

State machine::

    Idle --start_recording--> Recording --stop_recording--> Idle
    Idle --play (non-empty)--> Playing --finished / stop_playback--> Idle

Recording and playback exclude each other: starting one while the other
is active raises EngineBusyError.

Observers registered with add_listener receive ``(status, payload)`` for
every state change. The status names match the messages pushed to the
presentation layer.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple, Union

from tinymacro.adapter.base import BaseAdapter
from tinymacro.errors import AlreadyRecordingError, EmptyMacroError, EngineBusyError

from . import serialization
from .execution import DispatchResult, PlaybackReport, play_events
from .models import MacroEvent

logger = logging.getLogger(__name__)

RECORDING_STATUS = 'recording-status'
MACRO_RECORDED = 'macro-recorded'
PLAYBACK_STATUS = 'playback-status'
MACRO_LOADED = 'macro-loaded'
PLAYBACK_ERROR = 'playback-error'

Listener = Callable[[str, Any], None]


@dataclass
class EngineState:
    """Flags describing what the engine is doing."""

    recording: bool = False
    playing: bool = False
    last_event_timestamp: float = 0.0

    @property
    def mode(self) -> str:
        if self.recording:
            return 'recording'
        if self.playing:
            return 'playing'
        return 'idle'


class MacroEngine:
    """Records input events with their timing and replays them.

    Args:
        adapter: Injector used during playback.
        clock: Monotonic clock in seconds. Tests pass a fake one.
    """

    def __init__(self, adapter: BaseAdapter, clock: Callable[[], float] = time.monotonic):
        self.adapter = adapter
        self.state = EngineState()
        self._clock = clock
        self._macro: List[MacroEvent] = []
        self._listeners: List[Listener] = []
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self.last_report: Optional[PlaybackReport] = None

    # ---- observers ----

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, status: str, payload: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(status, payload)
            except Exception:
                logger.exception(f'Listener failed on {status}')

    # ---- macro contents ----

    @property
    def macro(self) -> Tuple[MacroEvent, ...]:
        return tuple(self._macro)

    def to_list(self) -> List[dict]:
        return serialization.to_list(self._macro)

    def clear_macro(self) -> None:
        """Discard the current macro."""
        self._macro = []
        logger.info('Macro cleared')

    def save_macro(self, data: Any) -> None:
        """Replace the macro with a decoded JSON array of events.

        Raises:
            DeserializationError: If ``data`` is malformed. The current
                macro is kept.
            EngineBusyError: While recording or playing.
        """
        self._ensure_idle('replace the macro')
        events = serialization.from_list(data)
        self._macro = events
        logger.info(f'Macro saved with {len(events)} events')

    def load_macro(self) -> List[dict]:
        """Return the current macro and announce it to observers."""
        data = self.to_list()
        self._notify(MACRO_LOADED, data)
        return data

    def save_to_file(self, path: Union[str, Path]) -> Path:
        """Write the current macro to ``path``, creating parent directories.

        Args:
            path: Destination file.

        Returns:
            The path written.
        """
        path = serialization.save_file(path, self._macro)
        logger.info(f'Wrote {len(self._macro)} events to {path}')
        return path

    def load_from_file(self, path: Union[str, Path]) -> List[dict]:
        """Replace the macro with the contents of a macro file.

        Raises:
            DeserializationError: If the file is unreadable or malformed.
                The current macro is kept.
            EngineBusyError: While recording or playing.
        """
        self._ensure_idle('load a macro')
        events = serialization.load_file(path)
        self._macro = events
        logger.info(f'Loaded {len(events)} events from {path}')
        return self.load_macro()

    # ---- recording ----

    def start_recording(self) -> None:
        """Clear the macro and start collecting events.

        Raises:
            AlreadyRecordingError: If already recording.
            EngineBusyError: During playback.
        """
        if self.state.recording:
            raise AlreadyRecordingError('Already recording')
        if self.state.playing:
            raise EngineBusyError('Cannot record during playback')

        self._macro = []
        self.state.recording = True
        self.state.last_event_timestamp = self._clock()
        logger.info('Recording started')
        self._notify(RECORDING_STATUS, {'recording': True})

    def record_event(self, event: MacroEvent) -> None:
        """Append ``event`` with the time elapsed since the previous one.

        Does nothing unless recording. Any delay already on ``event`` is
        replaced.
        """
        if not self.state.recording:
            return
        now = self._clock()
        delay = max(0, int(round((now - self.state.last_event_timestamp) * 1000)))
        self._macro.append(event.with_delay(delay))
        self.state.last_event_timestamp = now

    def stop_recording(self) -> None:
        """Stop recording and announce the recorded macro. Does nothing when idle."""
        if not self.state.recording:
            return
        self.state.recording = False
        logger.info(f'Recording stopped. Recorded events: {len(self._macro)}')
        self._notify(RECORDING_STATUS, {'recording': False})
        self._notify(MACRO_RECORDED, self.to_list())

    # ---- playback ----

    async def play(self) -> None:
        """Start replaying the macro in a background task.

        Does nothing if already playing. If a stopped run is still finishing
        its in-flight dispatch, waits for it and checks the state again.

        Raises:
            EmptyMacroError: If there is nothing to play.
            EngineBusyError: While recording.
        """
        if not self._ready_to_play():
            return
        while self._task is not None and not self._task.done():
            await self._task
            if not self._ready_to_play():
                return

        events = tuple(self._macro)
        self._stop_event = asyncio.Event()
        self.state.playing = True
        logger.info(f'Playing macro ({len(events)} events)')
        self._notify(PLAYBACK_STATUS, {'playing': True})
        self._task = asyncio.create_task(self._run_playback(events, self._stop_event))

    def _ready_to_play(self) -> bool:
        """False if already playing; raises if playback is not allowed now."""
        if self.state.playing:
            return False
        if self.state.recording:
            raise EngineBusyError('Stop recording first')
        if not self._macro:
            raise EmptyMacroError('No macro to play')
        return True

    def stop_playback(self) -> None:
        """Request playback to stop at the next wait or dispatch boundary."""
        if not self.state.playing:
            return
        self.state.playing = False
        if self._stop_event is not None:
            self._stop_event.set()
        logger.info('Playback stop requested')

    async def wait_playback(self) -> Optional[PlaybackReport]:
        """Wait for the current playback task, if any, and return its report."""
        if self._task is not None:
            await self._task
        return self.last_report

    async def close(self) -> None:
        self.stop_recording()
        self.stop_playback()
        await self.wait_playback()

    async def _run_playback(self, events: Tuple[MacroEvent, ...], stop_event: asyncio.Event) -> None:
        try:
            report = await play_events(
                self.adapter, events, stop_event, on_failure=self._on_playback_failure
            )
            self.last_report = report
            logger.info(
                f'Playback finished: {report.dispatched}/{report.total} events, '
                f'{len(report.failures)} failed'
            )
        finally:
            self.state.playing = False
            self._notify(PLAYBACK_STATUS, {'playing': False})

    def _on_playback_failure(self, index: int, event: MacroEvent, result: DispatchResult) -> None:
        logger.warning(f'Playback error at event {index + 1}: {result.error}')
        self._notify(PLAYBACK_ERROR, {
            'index': index,
            'event': event.to_dict(),
            'error': str(result.error),
        })

    # ---- helpers ----

    def _ensure_idle(self, action: str) -> None:
        if self.state.recording or self.state.playing:
            raise EngineBusyError(f'Cannot {action} while {self.state.mode}')

    def status(self) -> dict:
        return {
            'mode': self.state.mode,
            'recording': self.state.recording,
            'playing': self.state.playing,
            'events': len(self._macro),
        }
