import pytest

from portal.conftest import STUDENT_EMAIL, STUDENT_PASSWORD, FakeApi, login
from portal.errors import AuthError, NotAuthenticatedError, ValidationError
from portal.models import LoginLog, UserData
from portal.services.session import AuthManager, Session, SessionRegistry
from portal.utils.security import hash_secret, verify_secret


def test_save_user_data_inserts_once(app, store):
    with app.app_context():
        first = store.save_user_data(STUDENT_EMAIL, 'pw', {'name': 'A'})
        second = store.save_user_data(STUDENT_EMAIL, 'other', {'name': 'B'})

        assert first == (True, None, False)
        assert second == (True, None, True)
        row = UserData.query.filter_by(email=STUDENT_EMAIL).one()
        assert row.user_profile == {'name': 'A'}


def test_concurrent_insert_counts_as_existing(app, store, monkeypatch):
    with app.app_context():
        store.save_user_data(STUDENT_EMAIL, 'pw')
        # Both racers saw "not there yet"; the unique constraint decides
        monkeypatch.setattr(store, 'user_exists', lambda email: False)
        result = store.save_user_data(STUDENT_EMAIL, 'pw')

        assert result.success and result.already_exists
        assert UserData.query.count() == 1


def test_premium_flag_read_from_store(app, store):
    with app.app_context():
        store.save_user_data('vip@example.edu', 'pw', is_premium=True)
        assert store.is_premium('vip@example.edu')
        assert not store.is_premium('nobody@example.edu')


def test_passwords_are_hashed():
    stored = hash_secret(STUDENT_PASSWORD)
    assert STUDENT_PASSWORD not in stored
    assert verify_secret(STUDENT_PASSWORD, stored)
    assert not verify_secret('wrong', stored)


def test_empty_fields_rejected_before_any_call(app, store):
    api = FakeApi()
    with app.app_context():
        with pytest.raises(ValidationError):
            AuthManager(api, store).login('  ', 'pw')
        with pytest.raises(ValidationError):
            AuthManager(api, store).login(STUDENT_EMAIL, '')
        assert api.calls == []
        assert LoginLog.query.count() == 0


def test_failed_login_leaves_session_inactive(app, store):
    with app.app_context():
        manager = AuthManager(FakeApi(), store)
        with pytest.raises(AuthError):
            manager.login(STUDENT_EMAIL, 'wrong')
        assert not manager.is_authenticated()


def test_logout_clears_everything():
    session = Session(bearer_token='t', email=STUDENT_EMAIL, profile={'a': 1}, is_premium=True)
    session.queries['gatepasses'] = object()
    AuthManager(FakeApi(), store=None, session=session).logout()

    assert not session.is_active
    assert session.profile is None
    assert not session.is_premium
    assert session.queries == {}
    with pytest.raises(NotAuthenticatedError):
        session.require_token()


def test_registry_round_trip():
    registry = SessionRegistry()
    session = Session(bearer_token='t')
    sid = registry.add(session)

    assert registry.get(sid) is session
    assert registry.get(None) is None
    assert registry.discard(sid) is session
    assert len(registry) == 0


def test_logout_route_ends_session(client):
    login(client)
    assert client.get('/api/auth/me').get_json()['session']['email'] == STUDENT_EMAIL

    assert client.post('/api/auth/logout').status_code == 200
    assert client.get('/api/auth/me').status_code == 401


def test_relogin_replaces_previous_session(app, client):
    login(client)
    login(client)
    assert len(app.extensions['portal'].sessions) == 1


def test_password_reset(api, client):
    assert client.post('/api/auth/reset-password', json={}).status_code == 400
    r = client.post('/api/auth/reset-password', json={'email': STUDENT_EMAIL})
    assert r.status_code == 200
    assert api.called('request_password_reset') == [('request_password_reset', STUDENT_EMAIL)]


def test_refresh_premium_route(client):
    login(client)
    assert client.post('/api/auth/premium').get_json() == {'is_premium': False}


def test_idle_sessions_are_evicted():
    now = [0]
    registry = SessionRegistry(idle_timeout=60, clock=lambda: now[0])
    idle = Session(bearer_token='idle')
    active = Session(bearer_token='active')
    idle_sid = registry.add(idle)
    now[0] = 50
    active_sid = registry.add(active)

    now[0] = 100
    assert registry.get(active_sid) is active
    assert registry.get(idle_sid) is None
    assert not idle.is_active
    assert len(registry) == 1


def test_lookup_keeps_a_session_alive():
    now = [0]
    registry = SessionRegistry(idle_timeout=60, clock=lambda: now[0])
    sid = registry.add(Session(bearer_token='t'))
    for _ in range(3):
        now[0] += 50
        assert registry.get(sid) is not None


def test_abandoned_logins_do_not_accumulate(app):
    registry = app.extensions['portal'].sessions
    now = [0]
    registry.clock = lambda: now[0]

    for _ in range(50):
        assert login(app.test_client()).status_code == 200
        now[0] += registry.idle_timeout + 1

    assert len(registry) == 1
