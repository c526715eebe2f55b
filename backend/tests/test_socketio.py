from skullking import socketio
from skullking.socketio_events import presence


def _names(events):
    return [e['name'] for e in events]


def _last(events, name):
    matching = [e for e in events if e['name'] == name]
    assert matching, f'no {name} event in {_names(events)}'
    return matching[-1]['args'][0]


def _create_room(c):
    return c.post('/api/rooms', json={}).get_json()['code']


def test_socket_connect_and_ping(sio_client):
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert 'connected' in _names(received)

    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert _last(sio_client.get_received('/ws'), 'pong') == {'n': 1}


def test_join_room_requires_valid_code_and_login(flask_app, sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_room', {'code': 'nope'}, namespace='/ws')
    assert 'error' in _names(sio_client.get_received('/ws'))

    sio_client.emit('join_room', {'code': 'ZZZZZZ'}, namespace='/ws')
    assert _last(sio_client.get_received('/ws'), 'error') == {'message': 'Room not found'}

    anonymous = socketio.test_client(flask_app, namespace='/ws')
    anonymous.emit('join_room', {'code': 'ZZZZZZ'}, namespace='/ws')
    assert _last(anonymous.get_received('/ws'), 'error') == {'message': 'Unauthorized'}
    anonymous.disconnect(namespace='/ws')


def test_presence_overlay_follows_sockets(flask_app, alice, bob, sio_client, client):
    code = _create_room(alice)
    alice_id = alice.get('/api/me').get_json()['id']
    bob_id = bob.get('/api/me').get_json()['id']

    sio_client.emit('join_room', {'code': code}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert 'joined' in _names(received)
    assert _last(received, 'presence') == {'code': code, 'present_user_ids': [alice_id]}

    bob_socket = socketio.test_client(flask_app, flask_test_client=bob, namespace='/ws')
    bob_socket.emit('join_room', {'code': code}, namespace='/ws')
    assert _last(sio_client.get_received('/ws'), 'presence')['present_user_ids'] == sorted([alice_id, bob_id])

    room = client.get(f'/api/rooms/{code}').get_json()
    assert room['present_user_ids'] == sorted([alice_id, bob_id])

    # dropping the connection clears presence for everyone else
    bob_socket.disconnect(namespace='/ws')
    assert _last(sio_client.get_received('/ws'), 'presence')['present_user_ids'] == [alice_id]

    sio_client.emit('leave_room', {'code': code}, namespace='/ws')
    assert 'left' in _names(sio_client.get_received('/ws'))
    assert client.get(f'/api/rooms/{code}').get_json()['present_user_ids'] == []


def test_http_mutations_broadcast_to_room(alice, bob, sio_client):
    code = _create_room(alice)
    sio_client.emit('join_room', {'code': code}, namespace='/ws')
    sio_client.get_received('/ws')

    bob.post(f'/api/rooms/{code}/join')
    received = sio_client.get_received('/ws')
    assert _last(received, 'player_joined')['player']['user_name'] == 'bob'
    assert 'room_list_updated' in _names(received)

    bob.post(f'/api/rooms/{code}/messages', json={'text': 'Fifteen men'})
    assert _last(sio_client.get_received('/ws'), 'message')['message']['text'] == 'Fifteen men'

    alice.post(f'/api/rooms/{code}/start')
    assert _last(sio_client.get_received('/ws'), 'room_updated')['room']['status'] == 'RUNNING'

    alice.delete(f'/api/rooms/{code}')
    assert _last(sio_client.get_received('/ws'), 'room_deleted')['code'] == code


def test_join_and_leave_reject_non_object_payloads(sio_client):
    sio_client.get_received('/ws')
    for event in ('join_room', 'leave_room'):
        for payload in ('ABCDEF', ['ABCDEF'], None):
            sio_client.emit(event, payload, namespace='/ws')
            assert _last(sio_client.get_received('/ws'), 'error') == {'message': 'A valid room code is required'}
    assert sio_client.is_connected('/ws')


def test_second_socket_keeps_user_present(flask_app, alice, sio_client, client):
    code = _create_room(alice)
    alice_id = alice.get('/api/me').get_json()['id']
    other_tab = socketio.test_client(flask_app, flask_test_client=alice, namespace='/ws')

    sio_client.emit('join_room', {'code': code}, namespace='/ws')
    other_tab.emit('join_room', {'code': code}, namespace='/ws')
    assert presence.present(code) == {alice_id}

    other_tab.emit('leave_room', {'code': code}, namespace='/ws')
    assert client.get(f'/api/rooms/{code}').get_json()['present_user_ids'] == [alice_id]

    sio_client.emit('leave_room', {'code': code}, namespace='/ws')
    assert presence.present(code) == set()
    other_tab.disconnect(namespace='/ws')


def test_deleting_room_forgets_presence(alice, bob, sio_client):
    code = _create_room(alice)
    sio_client.emit('join_room', {'code': code}, namespace='/ws')
    sio_client.get_received('/ws')
    assert presence.present(code)

    alice.delete(f'/api/rooms/{code}')
    assert _last(sio_client.get_received('/ws'), 'room_deleted')['code'] == code
    assert presence.present(code) == set()

    # same when the last player walks out
    code = _create_room(bob)
    sio_client.emit('join_room', {'code': code}, namespace='/ws')
    assert presence.present(code)
    bob.post(f'/api/rooms/{code}/leave')
    assert presence.present(code) == set()
