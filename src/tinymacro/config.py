"""Runtime settings.

Defaults live on :class:`Settings`. ``TINYMACRO_*`` environment variables
override them, and command-line flags override both (see ``tinymacro.cli``).

Environment variables:
    TINYMACRO_HOST, TINYMACRO_PORT, TINYMACRO_MACROS_DIR, TINYMACRO_ADAPTER,
    TINYMACRO_HOTKEYS (0/1), TINYMACRO_CAPTURE (0/1),
    TINYMACRO_MOVE_INTERVAL_MS, TINYMACRO_LOG_LEVEL
"""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from tinymacro.capture.hotkeys import DEFAULT_HOTKEYS

ENV_PREFIX = 'TINYMACRO_'


@dataclass
class Settings:
    host: str = '0.0.0.0'
    port: int = 8080
    macros_dir: Path = Path('data') / 'macros'
    adapter: Optional[str] = None  # None = auto-detect, pynput first
    hotkeys: bool = True
    capture: bool = True
    move_interval_ms: int = 10
    log_level: str = 'INFO'
    hotkey_bindings: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HOTKEYS))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from defaults plus ``TINYMACRO_*`` variables.

        Raises:
            ValueError: If a variable has an invalid value.
        """
        env = os.environ if environ is None else environ
        settings = cls()

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value if value not in (None, '') else None

        if get('HOST'):
            settings.host = get('HOST')
        if get('PORT'):
            settings.port = _parse_int('PORT', get('PORT'))
        if get('MACROS_DIR'):
            settings.macros_dir = Path(get('MACROS_DIR'))
        if get('ADAPTER'):
            settings.adapter = get('ADAPTER')
        if get('HOTKEYS'):
            settings.hotkeys = _parse_bool('HOTKEYS', get('HOTKEYS'))
        if get('CAPTURE'):
            settings.capture = _parse_bool('CAPTURE', get('CAPTURE'))
        if get('MOVE_INTERVAL_MS'):
            settings.move_interval_ms = _parse_int('MOVE_INTERVAL_MS', get('MOVE_INTERVAL_MS'))
        if get('LOG_LEVEL'):
            settings.log_level = get('LOG_LEVEL').upper()
        return settings

    def replace(self, **changes) -> 'Settings':
        """Return a copy with the non-None ``changes`` applied."""
        return dataclasses.replace(self, **{k: v for k, v in changes.items() if v is not None})


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f'{ENV_PREFIX}{name} must be an integer, got {value!r}')


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f'{ENV_PREFIX}{name} must be a boolean, got {value!r}')
