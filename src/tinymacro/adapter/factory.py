"""Adapter factory for automatic adapter selection and fallback.

This module creates input adapters with automatic detection and graceful
fallback. It supports the pynput desktop adapter and the dry-run adapter.

The factory tries pynput first, then falls back to dry-run if no display
or input permission is available, so the server still starts and can
record, edit and save macros. Users can also force a specific adapter.

Example:
    Automatic adapter selection::

        adapter = await create_adapter()

    Force specific adapter::

        adapter = await create_adapter(preferred='pynput')
        adapter = await create_adapter(preferred='dry-run')
"""

import logging
from typing import List, Optional

from .base import BaseAdapter

logger = logging.getLogger(__name__)

ADAPTER_NAMES = ('pynput', 'dry-run')


async def create_adapter(preferred: Optional[str] = None) -> BaseAdapter:
    """Create and connect an adapter.

    Args:
        preferred: 'pynput' or 'dry-run'. If None, tries pynput and falls
            back to dry-run.

    Returns:
        Connected adapter instance.

    Raises:
        ValueError: If ``preferred`` names an unknown adapter.
        RuntimeError: If the explicitly requested adapter cannot connect.
    """
    if preferred == 'pynput':
        return await _create_pynput_adapter()
    elif preferred == 'dry-run':
        return await _create_dry_run_adapter()
    elif preferred is None:
        return await _create_adapter_with_fallback()
    raise ValueError(f'Unknown adapter {preferred!r}. Available: {", ".join(ADAPTER_NAMES)}')


async def _create_adapter_with_fallback() -> BaseAdapter:
    try:
        logger.info("Attempting to load pynput input backend...")
        adapter = await _create_pynput_adapter()
        logger.info("✓ Using pynput for input injection")
        return adapter
    except Exception as e:
        logger.warning(f"pynput unavailable: {e}")
        logger.warning("Falling back to dry-run adapter; actions will only be logged")
    return await _create_dry_run_adapter()


async def _create_pynput_adapter() -> BaseAdapter:
    from .pynput_adapter import PynputAdapter
    adapter = PynputAdapter()
    await adapter.connect()
    return adapter


async def _create_dry_run_adapter() -> BaseAdapter:
    from .dry_run import DryRunAdapter
    adapter = DryRunAdapter()
    await adapter.connect()
    return adapter


def get_available_adapters() -> List[str]:
    """Get list of adapter types whose dependencies import on this system.

    This doesn't guarantee the backend works, only that it can be loaded.
    """
    adapters = []

    try:
        import pynput  # noqa: F401
        adapters.append('pynput')
    except Exception:
        pass

    adapters.append('dry-run')
    return adapters
