"""
Per-app collaborators: remote API client, store, session registry, Socket.IO.
"""
from flask import current_app, session as cookie_session

SESSION_COOKIE_KEY = 'sid'


class PortalState:

    def __init__(self, api, store, sessions, socketio=None):
        self.api = api
        self.store = store
        self.sessions = sessions
        self.socketio = socketio

    def broadcast(self, event, data, room):
        if self.socketio is not None:
            self.socketio.emit(event, data, to=room)


def get_state():
    return current_app.extensions['portal']


def current_portal_session():
    """The Session bound to this browser's cookie, or None."""
    return get_state().sessions.get(cookie_session.get(SESSION_COOKIE_KEY))
