"""
Auth routes: login, logout, profile refresh, password reset.
"""
from flask import Blueprint, g, jsonify, request, session as cookie_session

from portal.services.session import AuthManager, Session
from portal.state import SESSION_COOKIE_KEY, get_state
from portal.utils.security import login_required

auth_bp = Blueprint('auth', __name__)


def _auth_manager(session):
    state = get_state()
    return AuthManager(state.api, state.store, session)


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    """
    Sign in against the portal API.

    Expects JSON:
    {
        "email": "student@example.edu",
        "password": "..."
    }

    Profile fetch and user caching are best-effort: the login succeeds even
    if they fail, in which case "profile" is null.
    """
    data = request.get_json(silent=True) or {}
    state = get_state()

    session = _auth_manager(Session()).login(
        data.get('email', ''),
        data.get('password', ''),
        ip_address=request.remote_addr,
        user_agent=request.headers.get('User-Agent')
    )

    previous = cookie_session.pop(SESSION_COOKIE_KEY, None)
    if previous:
        state.sessions.discard(previous)
    cookie_session[SESSION_COOKIE_KEY] = state.sessions.add(session)

    return jsonify({
        'message': 'Login successful',
        'session': session.to_dict()
    }), 200


@auth_bp.route('/api/auth/logout', methods=['POST'])
def logout():
    """Drop the session. No remote call is made."""
    sid = cookie_session.pop(SESSION_COOKIE_KEY, None)
    session = get_state().sessions.discard(sid) if sid else None
    if session is not None:
        _auth_manager(session).logout()
    return jsonify({'message': 'Logged out'}), 200


@auth_bp.route('/api/auth/me', methods=['GET'])
@login_required
def me():
    return jsonify({'session': g.portal_session.to_dict()}), 200


@auth_bp.route('/api/auth/refresh-profile', methods=['POST'])
@login_required
def refresh_profile():
    profile = _auth_manager(g.portal_session).refresh_profile()
    return jsonify({'profile': profile}), 200


@auth_bp.route('/api/auth/premium', methods=['POST'])
@login_required
def refresh_premium():
    """Re-read the premium flag from the store."""
    is_premium = _auth_manager(g.portal_session).refresh_premium()
    return jsonify({'is_premium': is_premium}), 200


@auth_bp.route('/api/auth/reset-password', methods=['POST'])
def reset_password():
    data = request.get_json(silent=True) or {}
    _auth_manager(Session()).request_password_reset(data.get('email', ''))
    return jsonify({'message': 'Please check your inbox and follow the instructions to reset your password.'}), 200
