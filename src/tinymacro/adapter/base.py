"""Base adapter interface for desktop input injection.

This module defines the abstract base class and enums for implementing
input adapters that perform synthetic keyboard and mouse actions on the
host. Concrete implementations should inherit from BaseAdapter and
implement all abstract methods.

The module provides:
    - Button enum for the mouse buttons a macro can click
    - BaseAdapter abstract base class defining the injector interface

Example:
    Implementing a custom adapter::

        class MyAdapter(BaseAdapter):
            async def connect(self) -> None:
                # Implementation-specific setup
                pass

            async def click(self, button: Button) -> None:
                # Implementation-specific click logic
                pass
"""

import abc
from enum import Enum
from typing import Any, Tuple, Union


class Button(Enum):
    """Mouse button identifiers.

    Values are the upper-case names used by the persisted macro format
    and by the command interface.
    """

    LEFT = "LEFT"
    RIGHT = "RIGHT"
    MIDDLE = "MIDDLE"

    @classmethod
    def parse(cls, value: Union["Button", str]) -> "Button":
        """Accept a Button or a button name in any case.

        Raises:
            ValueError: If the name is not a known button.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        available = ', '.join(button.name for button in cls)
        raise ValueError(f'Unknown button: {value!r}. Available: {available}')


class BaseAdapter(abc.ABC):
    """Abstract base class for input adapters.

    This class defines the interface the engine and timers use to perform
    one synthetic action at a time. Adapters wrap an input library or a
    stand-in for one and are the only place where the process touches the
    operating system's input queue.

    The interface supports:
        - Setup and teardown
        - Tapping a key by symbolic name or literal character
        - Clicking a mouse button at the current pointer position
        - Moving the pointer and reading its position

    Example:
        Using an adapter::

            adapter = SomeAdapter()
            await adapter.connect()
            await adapter.press_key("Space")
            await adapter.click(Button.LEFT)
            await adapter.move(100, 200)
            x, y = await adapter.position()
            adapter.close()
    """

    name = 'base'

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    async def connect(self) -> None:
        """Prepare the adapter for input.

        Raises:
            RuntimeError: If the backend cannot be initialised on this host.
        """

    @abc.abstractmethod
    async def press_key(self, key: str) -> None:
        """Press and release a key.

        Args:
            key: Symbolic key name (``"Space"``, ``"enter"``) or a literal
                character. Unknown names are typed as text.
        """

    @abc.abstractmethod
    async def click(self, button: Button) -> None:
        """Click a mouse button at the current pointer position."""

    @abc.abstractmethod
    async def move(self, x: int, y: int) -> None:
        """Move the pointer to absolute screen coordinates."""

    @abc.abstractmethod
    async def position(self) -> Tuple[int, int]:
        """Return the current pointer position."""

    def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
