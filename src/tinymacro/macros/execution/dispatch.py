"""Single-action dispatch with explicit results.

Adapters may raise anything. Callers in this package never let those
exceptions escape into a playback loop or a timer: every action goes
through :func:`attempt`, which returns a :class:`DispatchResult` and leaves
the decision to continue or abort with the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from tinymacro.adapter.base import BaseAdapter
from tinymacro.errors import InjectionError

from ..models import EventType, MacroEvent


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one injector call."""

    action: str
    error: Optional[InjectionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def attempt(action: str, call: Callable[[], Awaitable[object]]) -> DispatchResult:
    """Run ``call`` and wrap any failure in an InjectionError result."""
    try:
        await call()
    except Exception as e:
        return DispatchResult(action, InjectionError(action, e))
    return DispatchResult(action)


async def dispatch_event(adapter: BaseAdapter, event: MacroEvent) -> DispatchResult:
    """Perform ``event`` through ``adapter``."""
    if event.type is EventType.KEYPRESS:
        call = lambda: adapter.press_key(event.key)
    elif event.type is EventType.CLICK:
        call = lambda: adapter.click(event.button)
    else:
        call = lambda: adapter.move(event.x, event.y)
    return await attempt(event.describe(), call)
