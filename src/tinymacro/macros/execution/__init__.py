"""Macro execution package.

Components:
- dispatch: perform one event through an adapter, returning a DispatchResult
- player: replay an event sequence with delays and cooperative stop

Public API:
- play_events: Replay a sequence of events
- dispatch_event: Perform a single event
- attempt: Run any adapter call and capture its failure
"""
from __future__ import annotations

from .dispatch import DispatchResult, attempt, dispatch_event
from .player import PlaybackReport, play_events

__all__ = [
    'DispatchResult',
    'attempt',
    'dispatch_event',
    'PlaybackReport',
    'play_events',
]
