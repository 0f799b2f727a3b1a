"""
Security utilities: session ids, credential hashing, route guards.
"""
import hashlib
import hmac
import secrets
from functools import wraps

from flask import g

from portal.errors import NotAuthenticatedError, PremiumRequired
from portal.state import current_portal_session


def generate_session_id(length=32):
    """Generate a cryptographically secure id for the session registry."""
    return secrets.token_urlsafe(length)


def hash_secret(secret):
    """Hash a password using SHA-256 with a salt."""
    salt = secrets.token_hex(16)
    hashed = hashlib.sha256(f"{salt}:{secret}".encode()).hexdigest()
    return f"{salt}:{hashed}"


def verify_secret(secret, stored_hash):
    """Verify a password against its stored hash."""
    if not stored_hash:
        return False
    salt, expected_hash = stored_hash.split(':')
    actual_hash = hashlib.sha256(f"{salt}:{secret}".encode()).hexdigest()
    return hmac.compare_digest(actual_hash, expected_hash)


def login_required(view):
    """Reject the request unless it carries an active Session; expose it as g.portal_session."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        session = current_portal_session()
        if session is None or not session.is_active:
            raise NotAuthenticatedError()
        g.portal_session = session
        return view(*args, **kwargs)
    return wrapper


def premium_required(view):
    """Premium-only views, e.g. approving gatepasses. Implies login_required."""
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not g.portal_session.is_premium:
            raise PremiumRequired()
        return view(*args, **kwargs)
    return wrapper
