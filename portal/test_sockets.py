from portal.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, login


def _socket_client(app, client):
    socketio = app.extensions['portal'].socketio
    return socketio.test_client(app, flask_test_client=client)


def _events(socket_client, name):
    return [message['args'][0] for message in socket_client.get_received() if message['name'] == name]


def test_connect_greets_client(app, client):
    socket_client = _socket_client(app, client)
    assert socket_client.is_connected()
    assert _events(socket_client, 'connected')[0]['message'] == 'Connected to student portal'


def test_only_premium_users_watch_gatepasses(app, client):
    login(client)
    socket_client = _socket_client(app, client)
    socket_client.emit('join_gatepasses')
    assert _events(socket_client, 'join_gatepasses_response') == [
        {'success': False, 'error': 'This feature is exclusive to premium users'}
    ]


def test_approvers_hear_about_new_gatepasses(app, client, premium_admin):
    login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    socket_client = _socket_client(app, client)
    socket_client.emit('join_gatepasses')
    socket_client.get_received()

    client.post('/api/gatepasses', json={
        'outTime': '2024-01-01T08:00',
        'inTime': '2024-01-01T18:00',
        'outLocation': 'Market',
        'reason': 'Shopping'
    })
    assert _events(socket_client, 'gatepasses_changed') == [{'action': 'create', 'id': 1}]


def test_course_attendance_is_streamed_per_course(app, client):
    login(client)
    socket_client = _socket_client(app, client)
    socket_client.get_received()

    socket_client.emit('watch_course_attendance', {'course_ids': ['C1', 'C2', 'C3']})
    received = socket_client.get_received()

    slots = {m['args'][0]['courseId']: m['args'][0] for m in received if m['name'] == 'course_attendance'}
    assert slots['C1']['percentage'] == 75
    assert slots['C3']['state'] == 'error'
    assert [m['args'][0] for m in received if m['name'] == 'course_attendance_done'] == [{'count': 3}]
