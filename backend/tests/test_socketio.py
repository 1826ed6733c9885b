from gifleague import socketio


def _events(sio, name):
    return [pkt['args'][0] for pkt in sio.get_received() if pkt['name'] == name]


def _new_client(flask_app, auth=None):
    return socketio.test_client(flask_app, auth=auth)


def _session_id(received):
    return next(pkt['args'][0]['sessionId'] for pkt in received if pkt['name'] == 'session')


def _handle(room, name):
    return next(p['id'] for p in room['players'] if p['name'] == name)


def test_connect_sends_session(sio_client):
    assert sio_client.is_connected()
    received = sio_client.get_received()
    assert _session_id(received)


def test_ping_pong(sio_client):
    sio_client.get_received()
    sio_client.emit('ping', {'n': 1})
    assert _events(sio_client, 'pong') == [{'n': 1}]


def test_join_unknown_room_surfaces_error(sio_client):
    sio_client.get_received()
    sio_client.emit('join-room', {'roomId': '000001', 'playerName': 'Bob'})
    assert _events(sio_client, 'error') == [{'message': 'Room not found'}]


def test_start_with_one_player_surfaces_error(sio_client):
    sio_client.get_received()
    sio_client.emit('create-room', {'playerName': 'Alice'})
    room = _events(sio_client, 'room-created')[0]
    sio_client.emit('start-game', {'roomId': room['id']})
    errors = _events(sio_client, 'error')
    assert errors and 'players' in errors[0]['message']


def test_full_round_over_sockets(flask_app):
    a = _new_client(flask_app)
    b = _new_client(flask_app)
    c = _new_client(flask_app)
    for sio in (a, b, c):
        sio.get_received()

    a.emit('create-room', {'playerName': 'A'})
    room = _events(a, 'room-created')[0]
    room_id = room['id']
    assert room['status'] == 'lobby'

    b.emit('join-room', {'roomId': room_id, 'playerName': 'B'})
    c.emit('join-room', {'roomId': room_id, 'playerName': 'C'})
    roster = _events(a, 'player-joined')[-1]
    assert [p['name'] for p in roster['players']] == ['A', 'B', 'C']
    hb = _handle(roster, 'B')
    ha = _handle(roster, 'A')

    # Non-host start is ignored silently
    b.emit('start-game', {'roomId': room_id})
    assert _events(b, 'game-started') == []
    assert _events(b, 'error') == []

    a.emit('start-game', {'roomId': room_id})
    started = _events(c, 'game-started')[0]
    assert started['status'] == 'topic-selection'
    assert started['currentRound'] == 1

    a.emit('submit-topic', {'roomId': room_id, 'topic': 'X'})
    assert _events(b, 'topic-submitted')[0]['topic'] == 'X'

    a.emit('submit-gif', {'roomId': room_id, 'gifUrl': 'a.gif'})
    b.emit('submit-gif', {'roomId': room_id, 'gifUrl': 'b.gif'})
    assert _events(c, 'gif-submitted')[-1] == {'playerCount': 3, 'submissionCount': 2}
    c.emit('submit-gif', {'roomId': room_id, 'gifUrl': 'c.gif'})
    voting = _events(a, 'all-gifs-submitted')[0]
    assert voting['status'] == 'voting'
    assert len(voting['submissions']) == 3

    a.emit('submit-vote', {'roomId': room_id, 'votedPlayerId': hb})
    c.emit('submit-vote', {'roomId': room_id, 'votedPlayerId': hb})
    b.emit('submit-vote', {'roomId': room_id, 'votedPlayerId': ha})
    ended = _events(a, 'round-ended')[0]
    assert ended['winners'] == [hb]
    assert ended['voteCounts'] == {ha: 1, hb: 2}
    assert ended['room']['status'] == 'reveal'
    assert ended['room']['winnerOfLastRound'] == hb

    a.emit('next-round', {'roomId': room_id})
    new_round = _events(b, 'new-round')[0]
    assert new_round['currentRound'] == 2
    assert new_round['submissions'] == []

    for sio in (a, b, c):
        sio.disconnect()


def test_reconnect_with_session_restores_room(flask_app, client):
    a = _new_client(flask_app)
    b = _new_client(flask_app)
    session_a = _session_id(a.get_received())
    b.get_received()

    a.emit('create-room', {'playerName': 'A'})
    room_id = _events(a, 'room-created')[0]['id']
    b.emit('join-room', {'roomId': room_id, 'playerName': 'B'})
    a.emit('start-game', {'roomId': room_id})
    a.emit('submit-topic', {'roomId': room_id, 'topic': 'Y'})
    a.get_received()
    b.get_received()

    a.disconnect()
    a2 = _new_client(flask_app, auth={'sessionId': session_a})
    received = a2.get_received()
    assert _session_id(received) == session_a
    state = next(pkt['args'][0] for pkt in received if pkt['name'] == 'room-state')
    assert state['status'] == 'gif-selection'
    assert state['topic'] == 'Y'
    assert [p['name'] for p in _events(b, 'player-joined')[-1]['players']] == ['A', 'B']

    # Rebound host keeps playing in the same room
    a2.emit('submit-gif', {'roomId': room_id, 'gifUrl': 'a.gif'})
    b.emit('submit-gif', {'roomId': room_id, 'gifUrl': 'b.gif'})
    assert _events(a2, 'all-gifs-submitted')

    snapshot = client.get(f'/api/rooms/{room_id}').get_json()
    assert snapshot['status'] == 'voting'
    assert [p['points'] for p in snapshot['players']] == [0, 0]

    a2.disconnect()
    b.disconnect()


def test_disconnect_keeps_seat(flask_app, client):
    a = _new_client(flask_app)
    b = _new_client(flask_app)
    a.emit('create-room', {'playerName': 'A'})
    room_id = _events(a, 'room-created')[0]['id']
    b.emit('join-room', {'roomId': room_id, 'playerName': 'B'})
    b.disconnect()
    snapshot = client.get(f'/api/rooms/{room_id}').get_json()
    assert [p['name'] for p in snapshot['players']] == ['A', 'B']
    a.disconnect()


def test_broadcast_rosters_never_carry_session_ids(flask_app):
    a = _new_client(flask_app)
    b = _new_client(flask_app)
    session_a = _session_id(a.get_received())
    b.get_received()

    a.emit('create-room', {'playerName': 'A'})
    room_id = _events(a, 'room-created')[0]['id']
    b.emit('join-room', {'roomId': room_id, 'playerName': 'B'})
    a.emit('start-game', {'roomId': room_id})

    snapshots = [pkt['args'][0] for pkt in b.get_received()
                 if pkt['name'] in ('player-joined', 'game-started')]
    assert len(snapshots) == 2
    for snapshot in snapshots:
        for player in snapshot['players']:
            assert set(player) == {'id', 'name', 'points'}
        assert session_a not in str(snapshot)

    a.disconnect()
    b.disconnect()
