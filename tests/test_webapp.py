"""Tests for the WebSocket and HTTP API."""
from __future__ import annotations

import pytest

from tinymacro.adapter.dry_run import DryRunAdapter
from tinymacro.config import Settings
from tinymacro.session import Session
from tinymacro.webapp.server import create_app

MACRO = [
    {'type': 'keypress', 'key': 'A', 'delay': 0},
    {'type': 'click', 'button': 'LEFT', 'delay': 0},
]


@pytest.fixture
def session():
    return Session(DryRunAdapter(position=(12, 34)))


@pytest.fixture
async def client(aiohttp_client, session, tmp_path):
    settings = Settings(macros_dir=tmp_path / 'macros', hotkeys=False, capture=False)
    return await aiohttp_client(create_app(session, settings))


async def receive_until(ws, message_type):
    """Read messages until one of ``message_type`` arrives."""
    while True:
        message = await ws.receive_json(timeout=2)
        if message['type'] == message_type:
            return message


# ---- HTTP ----

async def test_status(client):
    resp = await client.get('/api/status')
    assert resp.status == 200
    data = await resp.json()

    assert data['adapter'] == 'dry-run'
    assert data['engine']['mode'] == 'idle'
    assert data['clicker']['running'] is False
    assert data['capture'] is False


async def test_command_errors_are_structured(client):
    resp = await client.post('/api/command', json={'command': 'play-macro'})
    assert resp.status == 400
    assert (await resp.json())['error'] == 'EmptyMacro'

    resp = await client.post('/api/command', json={'command': 'jump'})
    assert resp.status == 400
    assert (await resp.json())['error'] == 'UnknownCommand'

    resp = await client.post('/api/command', data='nope')
    assert resp.status == 400
    assert (await resp.json())['error'] == 'InvalidMessage'


async def test_command_replies(client):
    resp = await client.post('/api/command', json={'command': 'get-mouse-position'})
    assert await resp.json() == {'type': 'mouse-position', 'data': {'x': 12, 'y': 34}}

    resp = await client.post('/api/command', json={'command': 'clear-macro'})
    assert await resp.json() == {'status': 'ok', 'command': 'clear-macro'}


async def test_current_macro(client, session):
    resp = await client.put('/api/macro', json=MACRO)
    assert resp.status == 200
    assert (await resp.json())['events'] == 2

    resp = await client.get('/api/macro')
    assert await resp.json() == MACRO

    resp = await client.put('/api/macro', json=[{'type': 'move', 'x': 1, 'y': 2, 'delay': -1}])
    assert resp.status == 400
    assert (await resp.json())['error'] == 'DeserializationFailure'
    assert session.engine.to_list() == MACRO


async def test_mouse_position(client):
    resp = await client.get('/api/mouse-position')
    assert await resp.json() == {'x': 12, 'y': 34}


async def test_macro_library(client, session, tmp_path):
    resp = await client.post('/api/macros', json={'name': 'demo'})
    assert resp.status == 400  # nothing recorded yet

    session.engine.save_macro(MACRO)
    resp = await client.post('/api/macros', json={'name': 'demo'})
    assert resp.status == 201
    assert (await resp.json())['name'] == 'demo.json'
    assert (tmp_path / 'macros' / 'demo.json').exists()

    resp = await client.post('/api/macros', json={'name': 'demo.json'})
    assert resp.status == 409

    resp = await client.get('/api/macros')
    assert [item['name'] for item in await resp.json()] == ['demo.json']

    resp = await client.get('/api/macros/demo.json')
    assert await resp.json() == MACRO

    session.engine.clear_macro()
    resp = await client.post('/api/macros/demo/load')
    assert resp.status == 200
    assert (await resp.json())['events'] == 2
    assert session.engine.to_list() == MACRO

    resp = await client.delete('/api/macros/demo.json')
    assert resp.status == 200
    resp = await client.get('/api/macros/demo.json')
    assert resp.status == 404


async def test_macro_names_cannot_escape_library(client, session, tmp_path):
    session.engine.save_macro(MACRO)

    resp = await client.post('/api/macros', json={'name': '../outside'})

    assert resp.status == 201
    assert (tmp_path / 'macros' / 'outside.json').exists()
    assert not (tmp_path / 'outside.json').exists()


async def test_loading_malformed_file_keeps_macro(client, session, tmp_path):
    session.engine.save_macro(MACRO)
    (tmp_path / 'macros' / 'bad.json').write_text('{"not": "a list"}', encoding='utf-8')

    resp = await client.post('/api/macros/bad.json/load')

    assert resp.status == 400
    assert (await resp.json())['error'] == 'DeserializationFailure'
    assert session.engine.to_list() == MACRO


async def test_loading_undecodable_file_keeps_macro(client, session, tmp_path):
    session.engine.save_macro(MACRO)
    (tmp_path / 'macros' / 'binary.json').write_bytes(b'\xff\xfe[]')

    resp = await client.post('/api/macros/binary.json/load')

    assert resp.status == 400
    assert (await resp.json())['error'] == 'DeserializationFailure'
    assert session.engine.to_list() == MACRO


async def test_recent_logs(client):
    resp = await client.get('/api/logs/recent')
    assert resp.status == 200
    assert 'logs' in await resp.json()


# ---- WebSocket ----

async def test_websocket_greeting(client):
    ws = await client.ws_connect('/ws')

    assert await ws.receive_json(timeout=2) == {'type': 'status', 'msg': 'connected'}
    assert await ws.receive_json(timeout=2) == {'type': 'recording-status', 'data': {'recording': False}}
    assert await ws.receive_json(timeout=2) == {'type': 'playback-status', 'data': {'playing': False}}
    await ws.close()


async def test_websocket_recording_flow(client):
    ws = await client.ws_connect('/ws')
    await receive_until(ws, 'playback-status')

    await ws.send_json({'command': 'start-recording'})
    status = await receive_until(ws, 'recording-status')
    assert status['data'] == {'recording': True}

    await ws.send_json({'command': 'add-macro-event', 'data': {'type': 'keypress', 'key': 'a'}})
    await ws.send_json({'command': 'stop-recording'})
    recorded = await receive_until(ws, 'macro-recorded')
    assert [item['key'] for item in recorded['data']] == ['a']

    await ws.send_json({'command': 'load-macro'})
    loaded = await receive_until(ws, 'macro-loaded')
    assert loaded['data'] == recorded['data']
    await ws.close()


async def test_websocket_playback_is_broadcast(client, session):
    session.engine.save_macro(MACRO)
    ws = await client.ws_connect('/ws')
    await receive_until(ws, 'playback-status')

    await ws.send_json({'command': 'play-macro'})

    assert (await receive_until(ws, 'playback-status'))['data'] == {'playing': True}
    assert (await receive_until(ws, 'playback-status'))['data'] == {'playing': False}
    assert session.adapter.actions[0] == ('keypress', 'A')
    await ws.close()


async def test_websocket_errors(client):
    ws = await client.ws_connect('/ws')
    await receive_until(ws, 'playback-status')

    await ws.send_str('not json')
    assert (await receive_until(ws, 'error'))['error'] == 'InvalidMessage'

    await ws.send_json({'command': 'fly'})
    assert (await receive_until(ws, 'error'))['error'] == 'UnknownCommand'

    await ws.send_json({'command': 'start-clicker', 'data': {'interval': 5}})
    assert (await receive_until(ws, 'error'))['error'] == 'InvalidInterval'
    await ws.close()


async def test_timer_status_is_broadcast(client):
    ws = await client.ws_connect('/ws')
    await receive_until(ws, 'playback-status')

    await ws.send_json({'command': 'start-key-presser', 'data': {'interval': 500, 'key': 'k'}})
    status = await receive_until(ws, 'timer-status')
    assert status['data'] == {'timer': 'key-presser', 'running': True, 'interval': 500, 'target': 'k'}

    await ws.send_json({'command': 'stop-key-presser'})
    status = await receive_until(ws, 'timer-status')
    assert status['data'] == {'timer': 'key-presser', 'running': False}
    await ws.close()
