"""Recorded event model.

A macro is an ordered list of :class:`MacroEvent`. Each event carries the
number of milliseconds to wait after the previous one and a payload that
depends on its type:

    keypress -> key
    click    -> button
    move     -> x, y
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from tinymacro.adapter.base import Button


class EventType(Enum):
    """Kinds of recorded input."""

    KEYPRESS = 'keypress'
    CLICK = 'click'
    MOVE = 'move'


@dataclass(frozen=True)
class MacroEvent:
    """One recorded action with its delay in milliseconds.

    Construction validates that exactly the payload fields required by
    ``type`` are present and that ``delay`` is a non-negative integer.
    """

    type: EventType
    delay: int = 0
    key: Optional[str] = None
    button: Optional[Button] = None
    x: Optional[int] = None
    y: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, EventType):
            raise ValueError(f'Unknown event type: {self.type!r}')
        if not _is_int(self.delay) or self.delay < 0:
            raise ValueError(f'delay must be a non-negative integer, got {self.delay!r}')

        if self.type is EventType.KEYPRESS:
            if not isinstance(self.key, str) or not self.key:
                raise ValueError('keypress event requires a non-empty key')
            self._require_absent('button', 'x', 'y')
        elif self.type is EventType.CLICK:
            if not isinstance(self.button, Button):
                raise ValueError(f'click event requires a button, got {self.button!r}')
            self._require_absent('key', 'x', 'y')
        else:
            if not _is_int(self.x) or not _is_int(self.y):
                raise ValueError('move event requires integer x and y')
            self._require_absent('key', 'button')

    def _require_absent(self, *names: str) -> None:
        present = [name for name in names if getattr(self, name) is not None]
        if present:
            raise ValueError(f'{self.type.value} event does not take {", ".join(present)}')

    @classmethod
    def keypress(cls, key: str, delay: int = 0) -> 'MacroEvent':
        return cls(EventType.KEYPRESS, delay, key=key)

    @classmethod
    def click(cls, button: Union[Button, str], delay: int = 0) -> 'MacroEvent':
        return cls(EventType.CLICK, delay, button=Button.parse(button))

    @classmethod
    def move(cls, x: int, y: int, delay: int = 0) -> 'MacroEvent':
        return cls(EventType.MOVE, delay, x=x, y=y)

    def with_delay(self, delay: int) -> 'MacroEvent':
        return dataclasses.replace(self, delay=delay)

    def describe(self) -> str:
        """Short human readable form used in logs."""
        if self.type is EventType.KEYPRESS:
            return f'KEYPRESS {self.key}'
        if self.type is EventType.CLICK:
            return f'CLICK {self.button.value}'
        return f'MOVE {self.x},{self.y}'

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON object shape."""
        data: Dict[str, Any] = {'type': self.type.value}
        if self.type is EventType.KEYPRESS:
            data['key'] = self.key
        elif self.type is EventType.CLICK:
            data['button'] = self.button.value
        else:
            data['x'] = self.x
            data['y'] = self.y
        data['delay'] = self.delay
        return data


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
