"""Adapter that logs actions instead of performing them."""
from __future__ import annotations

import logging
from typing import List, Tuple

from .base import BaseAdapter, Button

logger = logging.getLogger(__name__)


class DryRunAdapter(BaseAdapter):
    """Records every action in ``actions`` and logs it as ``DRY ...``.

    Useful on headless hosts, for previewing a macro, and in tests.
    """

    name = 'dry-run'

    def __init__(self, position: Tuple[int, int] = (0, 0)) -> None:
        super().__init__()
        self.actions: List[Tuple] = []
        self._position = position
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def press_key(self, key: str) -> None:
        logger.info(f'DRY KEYPRESS {key}')
        self.actions.append(('keypress', key))

    async def click(self, button: Button) -> None:
        logger.info(f'DRY CLICK {button.value}')
        self.actions.append(('click', button))

    async def move(self, x: int, y: int) -> None:
        logger.info(f'DRY MOVE {x},{y}')
        self._position = (x, y)
        self.actions.append(('move', x, y))

    async def position(self) -> Tuple[int, int]:
        return self._position

    def close(self) -> None:
        self.connected = False
