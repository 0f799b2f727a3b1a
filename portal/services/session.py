"""
Session and authentication management.

A ``Session`` holds the bearer token for one signed-in browser session
together with the profile and premium flag derived from it. ``AuthManager``
runs the login sequence:

1. authenticate against the remote API (failure aborts the login)
2. fetch the user profile (best-effort)
3. cache the user in the store if it is not there yet (best-effort)

Steps 2 and 3 never undo step 1, so ``session.profile`` may be ``None``
right after a successful login.
"""
import logging
import threading
import time

from portal.errors import AuthError, NetworkError, NotAuthenticatedError, ValidationError
from portal.services.persistence import LOGIN_FAILED, LOGIN_SUCCESS
from portal.utils.security import generate_session_id

logger = logging.getLogger(__name__)


class Session:
    """Bearer token plus the caches derived from it."""

    def __init__(self, bearer_token=None, email=None, profile=None, is_premium=False,
                 role=None, permissions=None):
        self.bearer_token = bearer_token
        self.email = email
        self.profile = profile
        self.is_premium = is_premium
        self.role = role
        self.permissions = permissions or []
        # list name -> QueryState, so filter changes can reset the page
        self.queries = {}
        self.last_seen = None

    @property
    def is_active(self):
        return bool(self.bearer_token)

    def require_token(self):
        if not self.bearer_token:
            raise NotAuthenticatedError()
        return self.bearer_token

    def clear(self):
        self.bearer_token = None
        self.profile = None
        self.is_premium = False
        self.role = None
        self.permissions = []
        self.queries = {}

    def to_dict(self):
        return {
            'authenticated': self.is_active,
            'email': self.email,
            'role': self.role,
            'permissions': self.permissions,
            'is_premium': self.is_premium,
            'profile': self.profile
        }


class SessionRegistry:
    """
    In-process map of session id -> Session. Nothing is persisted.

    The server never sees a tab close, so sessions idle for longer than
    ``idle_timeout`` seconds are dropped (and their token cleared) on the
    next add or lookup. ``None`` keeps sessions until logout.
    """

    def __init__(self, idle_timeout=None, clock=time.monotonic):
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._sessions = {}
        self._lock = threading.Lock()

    def _evict_idle(self, now):
        # caller holds the lock
        if not self.idle_timeout:
            return
        expired = [sid for sid, session in self._sessions.items()
                   if session.last_seen is not None and now - session.last_seen > self.idle_timeout]
        for sid in expired:
            self._sessions.pop(sid).clear()
        if expired:
            logger.info("[AUTH] Expired %d idle session(s)", len(expired))

    def add(self, session):
        sid = generate_session_id()
        now = self.clock()
        session.last_seen = now
        with self._lock:
            self._evict_idle(now)
            self._sessions[sid] = session
        return sid

    def get(self, sid):
        if not sid:
            return None
        now = self.clock()
        with self._lock:
            self._evict_idle(now)
            session = self._sessions.get(sid)
            if session is not None:
                session.last_seen = now
            return session

    def discard(self, sid):
        with self._lock:
            return self._sessions.pop(sid, None)

    def __len__(self):
        return len(self._sessions)


class AuthManager:

    def __init__(self, api, store, session=None):
        self.api = api
        self.store = store
        self.session = session or Session()

    def is_authenticated(self):
        return self.session.is_active

    def login(self, email, password, ip_address=None, user_agent=None):
        email = (email or '').strip()
        if not email or not password:
            raise ValidationError('Please fill in all fields')

        try:
            response = self.api.login(email, password)
        except (AuthError, NetworkError) as e:
            self.store.save_login_log(email, LOGIN_FAILED, error_message=e.message,
                                      ip_address=ip_address, user_agent=user_agent)
            raise

        self.session.clear()
        self.session.bearer_token = response.get('userToken')
        self.session.email = email
        self.session.role = response.get('role')
        self.session.permissions = response.get('permissions') or []
        if not self.session.bearer_token:
            self.store.save_login_log(email, LOGIN_FAILED, error_message='No token in login response',
                                      ip_address=ip_address, user_agent=user_agent)
            raise AuthError('Login failed. Please check your credentials.')

        try:
            self.session.profile = self.api.get_user_profile(self.session.bearer_token)
        except (AuthError, NetworkError) as e:
            logger.warning("[AUTH] Error fetching user profile for %s: %s", email, e.message)

        result = self.store.save_user_data(email, password, self.session.profile)
        if not result.success:
            logger.warning("[AUTH] Failed to save user data for %s: %s", email, result.error)

        self.session.is_premium = self.store.is_premium(email)
        self.store.save_login_log(email, LOGIN_SUCCESS, ip_address=ip_address, user_agent=user_agent)
        logger.info("[AUTH] %s signed in (profile=%s, premium=%s)",
                    email, self.session.profile is not None, self.session.is_premium)
        return self.session

    def logout(self):
        logger.info("[AUTH] %s signed out", self.session.email)
        self.session.clear()

    def refresh_profile(self):
        token = self.session.require_token()
        self.session.profile = self.api.get_user_profile(token)
        return self.session.profile

    def refresh_premium(self):
        self.session.require_token()
        self.session.is_premium = self.store.is_premium(self.session.email)
        return self.session.is_premium

    def request_password_reset(self, email):
        email = (email or '').strip()
        if not email:
            raise ValidationError('Please enter your email address')
        self.api.request_password_reset(email)
