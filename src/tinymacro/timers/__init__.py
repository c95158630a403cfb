"""Auto-clicker and auto-key-presser."""

from .repeater import (
    MIN_INTERVAL_MS,
    Clicker,
    KeyPresser,
    RepeatingActionTimer,
    TimerConfig,
    validate_interval,
)

__all__ = [
    'MIN_INTERVAL_MS',
    'Clicker',
    'KeyPresser',
    'RepeatingActionTimer',
    'TimerConfig',
    'validate_interval',
]
