"""Repeating action timers.

This module provides the auto-clicker and auto-key-presser. Each is an
asyncio task that performs one fixed action at a fixed rate until stopped.

Behaviour:
- ``start`` validates the interval and replaces a running schedule
- the first action fires one interval after start
- a failed action is logged and counted; the timer keeps going
- ticks of one timer never overlap, a slow action delays the next tick
- ``stop`` on an idle timer does nothing
"""
from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

from tinymacro.adapter.base import BaseAdapter, Button
from tinymacro.errors import InvalidIntervalError
from tinymacro.macros.execution import DispatchResult, attempt

logger = logging.getLogger(__name__)

MIN_INTERVAL_MS = 10
DEFAULT_INTERVAL_MS = 1000
DEFAULT_BUTTON = Button.LEFT
DEFAULT_KEY = 'Space'

TIMER_STATUS = 'timer-status'
TIMER_ERROR = 'timer-error'

Listener = Callable[[str, Any], None]


def validate_interval(interval_ms: Any) -> int:
    """Return ``interval_ms`` if it is an integer of at least MIN_INTERVAL_MS.

    Raises:
        InvalidIntervalError: Otherwise.
    """
    if isinstance(interval_ms, bool) or not isinstance(interval_ms, int):
        raise InvalidIntervalError(f'Interval must be an integer, got {interval_ms!r}')
    if interval_ms < MIN_INTERVAL_MS:
        raise InvalidIntervalError(f'Interval must be at least {MIN_INTERVAL_MS}ms')
    return interval_ms


@dataclass(frozen=True)
class TimerConfig:
    """Interval in milliseconds and the button or key to act on."""

    interval_ms: int
    target: Union[Button, str]

    def __post_init__(self) -> None:
        validate_interval(self.interval_ms)

    def target_name(self) -> str:
        return self.target.value if isinstance(self.target, Button) else self.target


def _config_dict(data: Any) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f'Timer configuration must be an object, got {type(data).__name__}')
    return data


class RepeatingActionTimer(abc.ABC):
    """Base class for a periodic single-action task.

    Subclasses set ``kind`` and implement ``_perform`` and ``parse_config``.
    ``start`` and ``stop`` are serialized by a per-timer lock, so concurrent
    restarts from several clients still leave exactly one schedule.
    """

    kind = 'timer'

    def __init__(self, adapter: BaseAdapter) -> None:
        self.adapter = adapter
        self.config: Optional[TimerConfig] = None
        self.ticks = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []
        self._lock = asyncio.Lock()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, config: TimerConfig) -> None:
        """Start ticking with ``config``, replacing any running schedule.

        Args:
            config: Interval and target for the new schedule.

        Raises:
            InvalidIntervalError: If the interval is below MIN_INTERVAL_MS.
        """
        validate_interval(config.interval_ms)
        async with self._lock:
            if self.running:
                await self._cancel()
                logger.info(f'{self.kind}: restarting with new configuration')

            self.config = config
            self.ticks = 0
            self.failures = 0
            self._task = asyncio.create_task(self._run(config))
        logger.info(f'{self.kind} started: {config.target_name()} every {config.interval_ms}ms')
        self._notify(TIMER_STATUS, {
            'timer': self.kind,
            'running': True,
            'interval': config.interval_ms,
            'target': config.target_name(),
        })

    async def stop(self) -> None:
        """Cancel the schedule. Does nothing when the timer is idle."""
        async with self._lock:
            if not self.running:
                return
            await self._cancel()
        logger.info(f'{self.kind} stopped after {self.ticks} actions')
        self._notify(TIMER_STATUS, {'timer': self.kind, 'running': False})

    def status(self) -> dict:
        return {
            'running': self.running,
            'interval': self.config.interval_ms if self.config else None,
            'target': self.config.target_name() if self.config else None,
            'ticks': self.ticks,
            'failures': self.failures,
        }

    async def _cancel(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self, config: TimerConfig) -> None:
        loop = asyncio.get_running_loop()
        interval = config.interval_ms / 1000.0
        deadline = loop.time()
        while True:
            deadline += interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            result = await self._tick(config)
            if not result.ok:
                self.failures += 1
                logger.warning(f'{self.kind} error: {result.error}')
                self._notify(TIMER_ERROR, {'timer': self.kind, 'error': str(result.error)})
            # Skip missed deadlines instead of firing a burst to catch up
            now = loop.time()
            if deadline < now - interval:
                deadline = now

    async def _tick(self, config: TimerConfig) -> DispatchResult:
        self.ticks += 1
        return await attempt(f'{self.kind} {config.target_name()}', lambda: self._perform(config))

    @staticmethod
    @abc.abstractmethod
    def parse_config(data: Optional[dict]) -> TimerConfig:
        """Build a config from a command argument, applying defaults.

        Raises:
            ValueError: If the argument is malformed.
        """

    @abc.abstractmethod
    async def _perform(self, config: TimerConfig) -> None:
        """Perform one action through the adapter."""

    def _notify(self, status: str, payload: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(status, payload)
            except Exception:
                logger.exception(f'Listener failed on {status}')


class Clicker(RepeatingActionTimer):
    """Clicks a mouse button at a fixed interval."""

    kind = 'clicker'

    @staticmethod
    def parse_config(data: Optional[dict]) -> TimerConfig:
        """Build a config from a ``{interval, button}`` command argument."""
        data = _config_dict(data)
        interval = data.get('interval')
        button = data.get('button')
        return TimerConfig(
            DEFAULT_INTERVAL_MS if interval is None else interval,
            DEFAULT_BUTTON if button is None else Button.parse(button),
        )

    async def _perform(self, config: TimerConfig) -> None:
        await self.adapter.click(config.target)


class KeyPresser(RepeatingActionTimer):
    """Presses a key at a fixed interval."""

    kind = 'key-presser'

    @staticmethod
    def parse_config(data: Optional[dict]) -> TimerConfig:
        """Build a config from a ``{interval, key}`` command argument."""
        data = _config_dict(data)
        interval = data.get('interval')
        key = data.get('key')
        if key is not None and (not isinstance(key, str) or not key):
            raise ValueError(f'key must be a non-empty string, got {key!r}')
        return TimerConfig(
            DEFAULT_INTERVAL_MS if interval is None else interval,
            key or DEFAULT_KEY,
        )

    async def _perform(self, config: TimerConfig) -> None:
        await self.adapter.press_key(config.target)
