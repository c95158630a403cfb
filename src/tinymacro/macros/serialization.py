"""JSON format for persisted macros.

A macro file is a JSON array of event objects in replay order::

    [
      {"type": "keypress", "key": "A", "delay": 0},
      {"type": "click", "button": "LEFT", "delay": 200},
      {"type": "move", "x": 100, "y": 100, "delay": 250}
    ]

There is no version field. Decoding is strict about structure and types and
reports the index of the first offending element, so callers can reject a
bad file without touching the macro they already hold.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from tinymacro.adapter.base import Button
from tinymacro.errors import DeserializationError

from .models import EventType, MacroEvent


def to_list(events: Iterable[MacroEvent]) -> List[dict]:
    """Convert events to plain dictionaries ready for ``json.dumps``."""
    return [event.to_dict() for event in events]


def dumps(events: Iterable[MacroEvent]) -> str:
    """Serialize events to the persisted JSON text."""
    return json.dumps(to_list(events), indent=2)


def loads(text: str) -> List[MacroEvent]:
    """Parse persisted JSON text into events.

    Raises:
        DeserializationError: If the text is not valid JSON or any element
            does not describe a valid event.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DeserializationError(f'Invalid JSON: {e}')
    return from_list(data)


def from_list(data: Any) -> List[MacroEvent]:
    """Build events from an already decoded JSON array."""
    if not isinstance(data, list):
        raise DeserializationError(f'Macro must be a JSON array, got {type(data).__name__}')
    return [event_from_dict(item, index=i) for i, item in enumerate(data)]


def event_from_dict(item: Any, index: Optional[int] = None, require_delay: bool = True) -> MacroEvent:
    """Build a single event from its JSON object.

    Args:
        item: Decoded JSON object.
        index: Position in the array, used in error messages.
        require_delay: When False the ``delay`` field may be omitted and
            defaults to 0. Live capture sends events without a delay and
            lets the engine compute it.

    Raises:
        DeserializationError: If the object is malformed.
    """
    if not isinstance(item, dict):
        raise DeserializationError(f'expected an object, got {type(item).__name__}', index)

    raw_type = item.get('type')
    try:
        event_type = EventType(raw_type)
    except ValueError:
        raise DeserializationError(f'unknown event type {raw_type!r}', index)

    if 'delay' in item or require_delay:
        delay = _int_field(item, 'delay', index)
    else:
        delay = 0

    try:
        if event_type is EventType.KEYPRESS:
            key = item.get('key')
            if not isinstance(key, str):
                raise DeserializationError('keypress requires a string "key"', index)
            return MacroEvent.keypress(key, delay)
        if event_type is EventType.CLICK:
            return MacroEvent.click(_button_field(item, index), delay)
        return MacroEvent.move(_int_field(item, 'x', index), _int_field(item, 'y', index), delay)
    except DeserializationError:
        raise
    except ValueError as e:
        raise DeserializationError(str(e), index)


def load_file(path: Union[str, Path]) -> List[MacroEvent]:
    """Read a macro file.

    Raises:
        DeserializationError: If the file cannot be read or decoded.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise DeserializationError(f'Cannot read {path}: {e}')
    return loads(text)


def save_file(path: Union[str, Path], events: Iterable[MacroEvent]) -> Path:
    """Write events to ``path`` in the persisted format and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(events) + '\n', encoding='utf-8')
    return path


def _int_field(item: dict, name: str, index: Optional[int]) -> int:
    value = item.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DeserializationError(f'"{name}" must be an integer, got {value!r}', index)
    return value


def _button_field(item: dict, index: Optional[int]) -> Button:
    value = item.get('button')
    try:
        return Button.parse(value)
    except ValueError:
        raise DeserializationError(f'unknown button {value!r}', index)
