"""Global input capture and hotkeys."""

from .hotkeys import DEFAULT_HOTKEYS, GlobalHotkeys
from .listener import InputCapture, button_from_pynput, key_to_name

__all__ = ['DEFAULT_HOTKEYS', 'GlobalHotkeys', 'InputCapture', 'button_from_pynput', 'key_to_name']
