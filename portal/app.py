"""
Student Portal: Main Server Application

Flask + Socket.IO backend for the student portal: sign-in, attendance,
gatepasses, campus information and the user directory.
Run with: python -m portal
"""
import logging

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from portal.config import Config
from portal.database import init_db
from portal.errors import register_error_handlers
from portal.services.persistence import PortalStore
from portal.services.session import SessionRegistry
from portal.state import PortalState
from portal.utils.remote_api import RemoteApiClient

logger = logging.getLogger(__name__)


def create_app(config_class=Config, api=None):
    """Build the app. ``api`` replaces the remote API client (tests pass a fake)."""
    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    CORS(app, resources={r"/api/*": {"origins": "*"}}, supports_credentials=True)

    socketio = SocketIO(app, cors_allowed_origins="*", async_mode=app.config['SOCKETIO_ASYNC_MODE'])

    init_db(app)

    if api is None:
        api = RemoteApiClient(app.config['REMOTE_API_URL'], timeout=app.config['REMOTE_API_TIMEOUT'])
    app.extensions['portal'] = PortalState(
        api, PortalStore(), SessionRegistry(app.config.get('SESSION_IDLE_TIMEOUT')), socketio
    )

    register_error_handlers(app)

    # Register route blueprints
    from portal.routes.attendance import attendance_bp
    from portal.routes.auth import auth_bp
    from portal.routes.campus import campus_bp
    from portal.routes.directory import directory_bp
    from portal.routes.gatepass import gatepass_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(gatepass_bp)
    app.register_blueprint(campus_bp)
    app.register_blueprint(directory_bp)

    # Register WebSocket events
    from portal.sockets.events import register_socket_events
    register_socket_events(socketio)

    @app.route('/api/health', methods=['GET'])
    def health_check():
        return {'status': 'ok', 'service': 'student-portal-server'}, 200

    return app


def main():
    """Serve on all interfaces. Started through `python -m portal`, which greens the stdlib first."""
    import socket

    app = create_app()
    socketio = app.extensions['portal'].socketio

    hostname = socket.gethostname()
    try:
        local_ip = socket.gethostbyname(hostname)
    except socket.gaierror:
        local_ip = '127.0.0.1'

    port = 5000

    print("=" * 60)
    print("  Student Portal")
    print("=" * 60)
    print(f"  API:              http://{local_ip}:{port}/api")
    print(f"  Health check:     http://{local_ip}:{port}/api/health")
    print(f"  Remote API:       {app.config['REMOTE_API_URL']}")
    print("=" * 60)

    socketio.run(app, host='0.0.0.0', port=port, debug=True)
