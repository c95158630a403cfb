"""Command-line interface.

Subcommands:
    serve       run the WebSocket/HTTP command server
    play        play a macro file once (or ``--repeat`` times)
    record      record global input into a macro file until F9 or Ctrl+C
    clicker     click at a fixed interval
    keypresser  press a key at a fixed interval

Example:
    Record then replay a macro::

        tinymacro record data/macros/demo.json
        tinymacro play data/macros/demo.json --repeat 3

Note:
    ``clicker`` and ``keypresser`` run until Ctrl+C unless ``--duration``
    is given. Settings come from ``TINYMACRO_*`` environment variables and
    are overridden by the flags below.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tinymacro.adapter.factory import ADAPTER_NAMES
from tinymacro.config import Settings
from tinymacro.errors import MacroError
from tinymacro.macros.engine import RECORDING_STATUS
from tinymacro.session import Session
from tinymacro.timers.repeater import DEFAULT_INTERVAL_MS, DEFAULT_KEY, RepeatingActionTimer

logger = logging.getLogger('tinymacro.cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tinymacro',
        description='Record and replay keyboard/mouse macros, auto-click and auto-press keys',
        epilog='Use Ctrl+C to stop gracefully',
    )
    parser.add_argument('--adapter', choices=ADAPTER_NAMES,
                        help='Input adapter (default: pynput, falling back to dry-run)')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')
    sub = parser.add_subparsers(dest='command', required=True)

    serve = sub.add_parser('serve', help='Run the command/status server')
    serve.add_argument('--host', help='Bind address (default: 0.0.0.0)')
    serve.add_argument('--port', type=int, help='Port (default: 8080)')
    serve.add_argument('--macros-dir', type=Path, help='Macro library directory (default: data/macros)')
    serve.add_argument('--no-hotkeys', action='store_true', help='Disable F9/F10/F11 hotkeys')
    serve.add_argument('--no-capture', action='store_true', help='Disable global input capture')

    play = sub.add_parser('play', help='Play a macro file')
    play.add_argument('file', type=Path, help='Macro JSON file')
    play.add_argument('--repeat', type=int, default=1, help='Number of runs (default: 1)')

    record = sub.add_parser('record', help='Record a macro file (F9 or Ctrl+C stops)')
    record.add_argument('file', type=Path, help='Output macro JSON file')

    clicker = sub.add_parser('clicker', help='Click at a fixed interval')
    clicker.add_argument('--interval', type=int, default=DEFAULT_INTERVAL_MS, help='Milliseconds between clicks')
    clicker.add_argument('--button', default='LEFT', help='LEFT, RIGHT or MIDDLE')
    clicker.add_argument('--duration', type=float, help='Stop after this many seconds')

    keypresser = sub.add_parser('keypresser', help='Press a key at a fixed interval')
    keypresser.add_argument('--interval', type=int, default=DEFAULT_INTERVAL_MS, help='Milliseconds between presses')
    keypresser.add_argument('--key', default=DEFAULT_KEY, help='Key name or character')
    keypresser.add_argument('--duration', type=float, help='Stop after this many seconds')
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command-line overrides applied."""
    settings = Settings.from_env().replace(
        adapter=args.adapter,
        log_level=args.log_level.upper() if args.log_level else None,
        host=getattr(args, 'host', None),
        port=getattr(args, 'port', None),
        macros_dir=getattr(args, 'macros_dir', None),
    )
    if getattr(args, 'no_hotkeys', False):
        settings.hotkeys = False
    if getattr(args, 'no_capture', False):
        settings.capture = False
    return settings


async def run_play(settings: Settings, path: Path, repeat: int) -> int:
    """Play ``path`` ``repeat`` times. F11 stops when hotkeys are available."""
    session = await Session.create(settings.replace(capture=False))
    try:
        events = session.engine.load_from_file(path)
        print(f'Loaded macro: {path} ({len(events)} events)')
        for run in range(1, repeat + 1):
            await session.engine.play()
            report = await session.engine.wait_playback()
            print(f'Run {run}/{repeat}: {report.dispatched}/{report.total} events, '
                  f'{len(report.failures)} failed{" (stopped)" if report.stopped else ""}')
            if report.stopped:
                break
    finally:
        await session.close()
    return 0


async def run_record(settings: Settings, path: Path) -> int:
    """Record global input until recording is toggled off or Ctrl+C, then save."""
    session = await Session.create(settings.replace(capture=True))
    engine = session.engine
    done = asyncio.Event()

    def on_status(status, payload):
        if status == RECORDING_STATUS and not payload['recording']:
            done.set()

    engine.add_listener(on_status)
    try:
        if session.capture is None:
            print('ERROR: Global input capture is not available on this host')
            return 1
        engine.start_recording()
        stop_key = settings.hotkey_bindings['record'].upper() if session.hotkeys else 'Ctrl+C'
        print(f'Recording... press {stop_key} to stop')
        await done.wait()
    finally:
        engine.remove_listener(on_status)
        engine.stop_recording()
        if engine.macro:
            saved = engine.save_to_file(path)
            print(f'Saved {len(engine.macro)} events to {saved}')
        else:
            print('Nothing recorded')
        await session.close()
    return 0


async def run_timer(settings: Settings, timer_name: str, data: dict, duration: Optional[float]) -> int:
    """Run the clicker or key presser for ``duration`` seconds, or until Ctrl+C."""
    session = await Session.create(settings.replace(capture=False, hotkeys=False))
    timer: RepeatingActionTimer = getattr(session, timer_name)
    try:
        await timer.start(timer.parse_config(data))
        print(f'{timer.kind} running every {timer.config.interval_ms}ms '
              f'on {timer.config.target_name()}')
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
        print(f'{timer.kind}: {timer.ticks} actions, {timer.failures} failed')
    finally:
        await session.close()
    return 0


async def run(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == 'serve':
        from tinymacro.webapp.server import start_server
        await start_server(settings)
        return 0
    if args.command == 'play':
        return await run_play(settings, args.file, args.repeat)
    if args.command == 'record':
        return await run_record(settings, args.file)
    if args.command == 'clicker':
        return await run_timer(settings, 'clicker', {'interval': args.interval, 'button': args.button},
                               args.duration)
    if args.command == 'keypresser':
        return await run_timer(settings, 'key_presser', {'interval': args.interval, 'key': args.key},
                               args.duration)
    raise ValueError(f'Unknown command: {args.command}')


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings(args)
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='[%(levelname)s] %(name)s: %(message)s'
    )

    try:
        return asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        print('\nStopped by user')
        return 0
    except (MacroError, ValueError) as e:
        print(f'ERROR: {e}')
        return 1


if __name__ == '__main__':
    sys.exit(main())
