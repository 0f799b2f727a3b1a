"""
Error taxonomy shared by services and routes.

Every error carries the HTTP status the route layer answers with; the
handler registered in ``register_error_handlers`` renders it as
``{"error": message}``.
"""
import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class PortalError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PortalError):
    """Malformed or missing user input, caught before any network call."""
    status_code = 400


class AuthError(PortalError):
    """Credentials rejected or token missing/expired."""
    status_code = 401


class NotAuthenticatedError(AuthError):
    """An operation needs an active session and there is none."""

    def __init__(self, message='Not authenticated'):
        super().__init__(message)


class PremiumRequired(PortalError):
    status_code = 403

    def __init__(self, message='This feature is exclusive to premium users'):
        super().__init__(message)


class NetworkError(PortalError):
    """Any failed call to the remote API (timeout, 4xx/5xx, connectivity)."""
    status_code = 502


def register_error_handlers(app):
    @app.errorhandler(PortalError)
    def handle_portal_error(error):
        if error.status_code >= 500:
            logger.warning("[API] %s: %s", type(error).__name__, error.message)
        return jsonify({'error': error.message}), error.status_code
