"""Input injector adapters."""

from .base import BaseAdapter, Button
from .dry_run import DryRunAdapter
from .factory import create_adapter, get_available_adapters

__all__ = ['BaseAdapter', 'Button', 'DryRunAdapter', 'create_adapter', 'get_available_adapters']
