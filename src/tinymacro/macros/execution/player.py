"""Core playback loop.

This module provides play_events, which replays a sequence of recorded
events with their delays, honouring a stop event at every wait and before
every dispatch.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from tinymacro.adapter.base import BaseAdapter

from ..models import MacroEvent
from .dispatch import DispatchResult, dispatch_event

logger = logging.getLogger(__name__)

FailureCallback = Callable[[int, MacroEvent, DispatchResult], None]


@dataclass
class PlaybackReport:
    """What happened during one playback run."""

    total: int
    dispatched: int = 0
    stopped: bool = False
    failures: List[Tuple[int, DispatchResult]] = field(default_factory=list)


async def play_events(
    adapter: BaseAdapter,
    events: Sequence[MacroEvent],
    stop_event: asyncio.Event,
    *,
    on_failure: Optional[FailureCallback] = None,
) -> PlaybackReport:
    """Replay ``events`` through ``adapter``.

    For each event: abort if stop was requested, wait ``delay`` ms (the
    wait ends early on stop), abort if stop was requested during the wait,
    then dispatch. A failed dispatch is reported through ``on_failure`` and
    playback continues with the next event.

    Args:
        adapter: Injector used for every event.
        events: Events in replay order.
        stop_event: Set by the caller to stop cooperatively.
        on_failure: Optional callback receiving (index, event, result).

    Returns:
        A PlaybackReport with counts and failures.
    """
    report = PlaybackReport(total=len(events))

    for index, event in enumerate(events):
        if stop_event.is_set():
            report.stopped = True
            break

        if event.delay > 0:
            await _interruptible_sleep(event.delay / 1000.0, stop_event)
            if stop_event.is_set():
                report.stopped = True
                break

        result = await dispatch_event(adapter, event)
        report.dispatched += 1
        if not result.ok:
            report.failures.append((index, result))
            if on_failure is not None:
                on_failure(index, event, result)

    if report.stopped:
        logger.info(f'Playback stopped after {report.dispatched}/{report.total} events')
    return report


async def _interruptible_sleep(duration: float, stop_event: asyncio.Event) -> None:
    """Sleep for ``duration`` seconds or until ``stop_event`` is set."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=duration)
    except asyncio.TimeoutError:
        pass
