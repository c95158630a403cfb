"""Shared fixtures: a dry-run adapter, a fake clock and a status recorder."""
from __future__ import annotations

import asyncio
from typing import Iterable

import pytest

from tinymacro.adapter.dry_run import DryRunAdapter
from tinymacro.macros.engine import MacroEngine


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FailingAdapter(DryRunAdapter):
    """Dry-run adapter whose key presses fail for selected keys."""

    name = 'failing'

    def __init__(self, fail_keys: Iterable[str] = ()) -> None:
        super().__init__()
        self.fail_keys = set(fail_keys)

    async def press_key(self, key: str) -> None:
        if key in self.fail_keys:
            raise RuntimeError(f'cannot press {key}')
        await super().press_key(key)


class SlowAdapter(DryRunAdapter):
    """Dry-run adapter whose key presses take ``delay`` seconds to land."""

    name = 'slow'

    def __init__(self, delay: float = 0.1) -> None:
        super().__init__()
        self.delay = delay

    async def press_key(self, key: str) -> None:
        await asyncio.sleep(self.delay)
        await super().press_key(key)


class StatusRecorder:
    """Listener collecting ``(status, payload)`` notifications."""

    def __init__(self) -> None:
        self.calls = []

    def __call__(self, status, payload) -> None:
        self.calls.append((status, payload))

    def of(self, status):
        return [payload for name, payload in self.calls if name == status]


@pytest.fixture
def adapter():
    return DryRunAdapter()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(adapter, clock):
    return MacroEngine(adapter, clock=clock)


@pytest.fixture
def recorder(engine):
    recorder = StatusRecorder()
    engine.add_listener(recorder)
    return recorder
