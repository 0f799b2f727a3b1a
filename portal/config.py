"""
Configuration for the Student Portal server.
"""
import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'student-portal-dev-key-change-in-production')

    # Point DATABASE_URL at the Supabase Postgres instance in production
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL', f"sqlite:///{os.path.join(BASE_DIR, 'portal.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Remote education API
    REMOTE_API_URL = os.environ.get('REMOTE_API_URL', 'https://rishiverse-api.rishihood.edu.in/api/v1')
    REMOTE_API_TIMEOUT = float(os.environ.get('REMOTE_API_TIMEOUT', 15))  # seconds
    MAX_CONCURRENT_FETCHES = 8

    # Supabase project (the database itself is reached through DATABASE_URL)
    SUPABASE_URL = os.environ.get('SUPABASE_URL', '')
    SUPABASE_KEY = os.environ.get('SUPABASE_KEY', '')

    # Static directory listing ({"data": [...]})
    DIRECTORY_DATA_PATH = os.environ.get('DIRECTORY_DATA_PATH', os.path.join(BASE_DIR, 'data.json'))

    # Page sizes
    GATEPASS_PAGE_SIZE = 10
    DIRECTORY_PAGE_SIZE = 12
    LOGIN_LOG_PAGE_SIZE = 15

    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'eventlet')
    # Server-side sessions unused for this long are dropped (seconds)
    SESSION_IDLE_TIMEOUT = int(os.environ.get('SESSION_IDLE_TIMEOUT', 8 * 60 * 60))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SOCKETIO_ASYNC_MODE = 'threading'
    LOG_LEVEL = 'DEBUG'
