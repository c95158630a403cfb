"""Tests for MacroEngine recording, playback and persistence."""
from __future__ import annotations

import asyncio

import pytest

from conftest import FailingAdapter, SlowAdapter, StatusRecorder
from tinymacro.adapter.base import Button
from tinymacro.errors import (
    AlreadyRecordingError,
    DeserializationError,
    EmptyMacroError,
    EngineBusyError,
)
from tinymacro.macros.engine import MacroEngine
from tinymacro.macros.models import MacroEvent

SCENARIO = [
    {'type': 'keypress', 'key': 'A', 'delay': 0},
    {'type': 'click', 'button': 'LEFT', 'delay': 20},
    {'type': 'move', 'x': 100, 'y': 100, 'delay': 25},
]


# ---- recording ----

def test_recorded_delays_follow_the_clock(engine, clock):
    clock.now = 10.0
    engine.start_recording()
    engine.record_event(MacroEvent.keypress('A'))
    clock.now = 10.2
    engine.record_event(MacroEvent.click(Button.LEFT))
    clock.now = 10.45
    engine.record_event(MacroEvent.move(100, 100))
    engine.stop_recording()

    assert [event.delay for event in engine.macro] == [0, 200, 250]
    assert engine.to_list() == [
        {'type': 'keypress', 'key': 'A', 'delay': 0},
        {'type': 'click', 'button': 'LEFT', 'delay': 200},
        {'type': 'move', 'x': 100, 'y': 100, 'delay': 250},
    ]


def test_incoming_delay_is_replaced(engine, clock):
    engine.start_recording()
    clock.now = 0.05
    engine.record_event(MacroEvent.keypress('a', delay=9999))

    assert engine.macro[0].delay == 50


def test_record_event_is_ignored_when_not_recording(engine):
    engine.record_event(MacroEvent.keypress('A'))

    assert engine.macro == ()


def test_start_recording_clears_previous_macro(engine):
    engine.save_macro(SCENARIO)
    engine.start_recording()

    assert engine.macro == ()


def test_start_recording_twice_fails(engine):
    engine.start_recording()

    with pytest.raises(AlreadyRecordingError):
        engine.start_recording()
    assert engine.state.recording


def test_stop_recording_notifies_macro(engine, recorder):
    engine.start_recording()
    engine.record_event(MacroEvent.keypress('x'))
    engine.stop_recording()

    assert recorder.of('recording-status') == [{'recording': True}, {'recording': False}]
    assert recorder.of('macro-recorded') == [[{'type': 'keypress', 'key': 'x', 'delay': 0}]]


def test_stop_recording_when_idle_is_silent(engine, recorder):
    engine.stop_recording()

    assert recorder.calls == []


# ---- playback ----

async def test_playback_dispatches_in_order(engine, adapter, recorder):
    engine.save_macro(SCENARIO)

    await engine.play()
    assert engine.state.playing
    report = await engine.wait_playback()

    assert adapter.actions == [('keypress', 'A'), ('click', Button.LEFT), ('move', 100, 100)]
    assert report.dispatched == 3 and not report.stopped
    assert recorder.of('playback-status') == [{'playing': True}, {'playing': False}]
    assert not engine.state.playing


async def test_play_empty_macro_fails_without_dispatch(engine, adapter, recorder):
    with pytest.raises(EmptyMacroError):
        await engine.play()

    assert adapter.actions == []
    assert not engine.state.playing
    assert recorder.calls == []


async def test_stop_playback_interrupts_wait(engine, adapter):
    engine.save_macro([
        {'type': 'keypress', 'key': 'A', 'delay': 0},
        {'type': 'keypress', 'key': 'B', 'delay': 5000},
    ])

    await engine.play()
    await asyncio.sleep(0.05)
    engine.stop_playback()
    report = await asyncio.wait_for(engine.wait_playback(), timeout=1)

    assert adapter.actions == [('keypress', 'A')]
    assert report.stopped
    assert not engine.state.playing


async def test_stop_during_dispatch_skips_remaining_events():
    adapter = SlowAdapter(delay=0.1)
    engine = MacroEngine(adapter)
    engine.save_macro([
        {'type': 'keypress', 'key': 'A', 'delay': 0},
        {'type': 'keypress', 'key': 'B', 'delay': 0},
    ])

    await engine.play()
    await asyncio.sleep(0.02)
    engine.stop_playback()
    report = await asyncio.wait_for(engine.wait_playback(), timeout=1)

    assert adapter.actions == [('keypress', 'A')]
    assert report.stopped
    assert report.dispatched == 1


async def test_play_while_playing_is_ignored(engine, adapter):
    engine.save_macro([{'type': 'keypress', 'key': 'A', 'delay': 30}])

    await engine.play()
    await engine.play()
    await engine.wait_playback()

    assert adapter.actions == [('keypress', 'A')]


async def test_failed_event_does_not_abort_playback():
    adapter = FailingAdapter(fail_keys={'B'})
    engine = MacroEngine(adapter)
    recorder = StatusRecorder()
    engine.add_listener(recorder)
    engine.save_macro([
        {'type': 'keypress', 'key': 'A', 'delay': 0},
        {'type': 'keypress', 'key': 'B', 'delay': 0},
        {'type': 'keypress', 'key': 'C', 'delay': 0},
    ])

    await engine.play()
    report = await engine.wait_playback()

    assert adapter.actions == [('keypress', 'A'), ('keypress', 'C')]
    assert report.dispatched == 3
    assert [index for index, _ in report.failures] == [1]
    errors = recorder.of('playback-error')
    assert len(errors) == 1
    assert errors[0]['index'] == 1
    assert errors[0]['event'] == {'type': 'keypress', 'key': 'B', 'delay': 0}
    assert 'cannot press B' in errors[0]['error']


async def test_clearing_during_playback_does_not_affect_the_run(engine, adapter):
    engine.save_macro([
        {'type': 'keypress', 'key': 'A', 'delay': 10},
        {'type': 'keypress', 'key': 'B', 'delay': 10},
    ])

    await engine.play()
    engine.clear_macro()
    await engine.wait_playback()

    assert adapter.actions == [('keypress', 'A'), ('keypress', 'B')]
    assert engine.macro == ()


# ---- mutual exclusion ----

async def test_play_while_recording_is_busy(engine):
    engine.save_macro(SCENARIO)
    engine.start_recording()
    engine.record_event(MacroEvent.keypress('a'))

    with pytest.raises(EngineBusyError):
        await engine.play()
    assert not engine.state.playing


async def test_record_and_replace_while_playing_are_busy(engine):
    engine.save_macro([{'type': 'keypress', 'key': 'A', 'delay': 5000}])
    await engine.play()

    with pytest.raises(EngineBusyError):
        engine.start_recording()
    with pytest.raises(EngineBusyError):
        engine.save_macro(SCENARIO)

    await engine.close()
    assert not engine.state.playing


async def test_play_rechecks_recording_after_previous_run_drains():
    engine = MacroEngine(SlowAdapter(delay=0.1))
    recorder = StatusRecorder()
    engine.add_listener(recorder)
    engine.save_macro([{'type': 'keypress', 'key': 'A', 'delay': 0}])

    await engine.play()
    await asyncio.sleep(0.02)
    engine.stop_playback()
    pending = asyncio.create_task(engine.play())
    await asyncio.sleep(0)
    engine.start_recording()

    with pytest.raises(EngineBusyError):
        await pending
    assert engine.state.recording
    assert not engine.state.playing
    assert recorder.of('playback-status') == [{'playing': True}, {'playing': False}]
    assert engine.adapter.actions == [('keypress', 'A')]


async def test_play_rechecks_macro_after_previous_run_drains():
    engine = MacroEngine(SlowAdapter(delay=0.1))
    engine.save_macro([{'type': 'keypress', 'key': 'A', 'delay': 0}])

    await engine.play()
    await asyncio.sleep(0.02)
    engine.stop_playback()
    pending = asyncio.create_task(engine.play())
    await asyncio.sleep(0)
    engine.clear_macro()

    with pytest.raises(EmptyMacroError):
        await pending
    assert not engine.state.playing


# ---- persistence ----

def test_malformed_save_keeps_current_macro(engine):
    engine.save_macro(SCENARIO)

    with pytest.raises(DeserializationError):
        engine.save_macro([{'type': 'keypress', 'key': 'A', 'delay': -5}])

    assert engine.to_list() == SCENARIO


def test_file_round_trip_announces_loaded_macro(engine, recorder, tmp_path):
    engine.save_macro(SCENARIO)
    path = engine.save_to_file(tmp_path / 'demo.json')
    engine.clear_macro()

    data = engine.load_from_file(path)

    assert data == SCENARIO
    assert engine.to_list() == SCENARIO
    assert recorder.of('macro-loaded') == [SCENARIO]


def test_load_malformed_file_keeps_current_macro(engine, tmp_path):
    engine.save_macro(SCENARIO)
    path = tmp_path / 'bad.json'
    path.write_text('[{"type": "keypress"}]', encoding='utf-8')

    with pytest.raises(DeserializationError):
        engine.load_from_file(path)

    assert engine.to_list() == SCENARIO


def test_load_undecodable_file_keeps_current_macro(engine, recorder, tmp_path):
    engine.save_macro(SCENARIO)
    path = tmp_path / 'binary.json'
    path.write_bytes(b'\xff\xfe[]')

    with pytest.raises(DeserializationError):
        engine.load_from_file(path)

    assert engine.to_list() == SCENARIO
    assert recorder.of('macro-loaded') == []


def test_removed_listener_is_not_notified(engine):
    recorder = StatusRecorder()
    engine.add_listener(recorder)
    engine.remove_listener(recorder)
    engine.remove_listener(recorder)

    engine.start_recording()
    engine.stop_recording()

    assert recorder.calls == []


def test_status_reports_mode(engine):
    assert engine.status() == {'mode': 'idle', 'recording': False, 'playing': False, 'events': 0}
    engine.start_recording()
    assert engine.status()['mode'] == 'recording'


async def test_playback_honours_recorded_delays(engine, adapter):
    engine.save_macro([
        {'type': 'keypress', 'key': 'A', 'delay': 0},
        {'type': 'click', 'button': 'LEFT', 'delay': 200},
        {'type': 'move', 'x': 100, 'y': 100, 'delay': 250},
    ])
    loop = asyncio.get_running_loop()

    started = loop.time()
    await engine.play()
    await engine.wait_playback()

    assert loop.time() - started >= 0.44
    assert len(adapter.actions) == 3
