"""
WebSocket event handlers for real-time updates.
"""
import logging

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from portal.routes.gatepass import APPROVERS_ROOM
from portal.services.attendance import AttendanceAggregator
from portal.state import current_portal_session, get_state

logger = logging.getLogger(__name__)


def register_socket_events(socketio):
    """Register all WebSocket event handlers with the SocketIO instance."""

    @socketio.on('connect')
    def handle_connect():
        logger.info("[WS] Client connected: %s", request.sid)
        emit('connected', {'message': 'Connected to student portal', 'sid': request.sid})

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        logger.info("[WS] Client disconnected: %s", request.sid)

    @socketio.on('join_gatepasses')
    def handle_join_gatepasses(data=None):
        """Premium users watch the all-gatepasses list for approvals elsewhere."""
        session = current_portal_session()
        if session is None or not session.is_active or not session.is_premium:
            emit('join_gatepasses_response', {
                'success': False,
                'error': 'This feature is exclusive to premium users'
            })
            return
        join_room(APPROVERS_ROOM)
        emit('join_gatepasses_response', {'success': True})
        logger.info("[WS] %s joined %s", request.sid, APPROVERS_ROOM)

    @socketio.on('leave_gatepasses')
    def handle_leave_gatepasses(data=None):
        leave_room(APPROVERS_ROOM)
        logger.info("[WS] %s left %s", request.sid, APPROVERS_ROOM)

    @socketio.on('watch_course_attendance')
    def handle_watch_course_attendance(data):
        """
        Stream one attendance slot per course as each fetch completes.
        Data: { "student_id": "...", "course_ids": ["...", ...] }
        """
        session = current_portal_session()
        if session is None or not session.is_active:
            emit('course_attendance_error', {'error': 'Not authenticated'})
            return

        data = data or {}
        student_id = data.get('student_id') or (session.profile or {}).get('enrollmentNo')
        course_ids = data.get('course_ids') or []
        if not student_id or not course_ids:
            emit('course_attendance_error', {'error': 'student_id and course_ids are required'})
            return

        client_sid = request.sid

        def push_slot(slot):
            socketio.emit('course_attendance', slot, to=client_sid)

        aggregator = AttendanceAggregator(
            get_state().api, session,
            max_workers=current_app.config.get('MAX_CONCURRENT_FETCHES', 8)
        )
        slots = aggregator.fetch_course_slots(student_id, course_ids, on_slot=push_slot)
        emit('course_attendance_done', {'count': len(slots)})
        logger.debug("[WS] Streamed %d attendance slots to %s", len(slots), client_sid)

    return socketio
