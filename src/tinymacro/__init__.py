"""tinymacro: record, replay and repeat desktop input.

Packages:
- adapter: input injector interface and backends
- macros: event model, JSON format, recording/playback engine
- timers: auto-clicker and auto-key-presser
- capture: global input listeners and hotkeys
- webapp: aiohttp command/status server
- cli: command-line entry point
"""

__version__ = '0.3.0'
