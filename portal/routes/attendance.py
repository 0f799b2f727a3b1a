"""
Attendance routes: semester overview, per-course detail, per-course slots.
"""
from flask import Blueprint, current_app, g, jsonify, request

from portal.errors import ValidationError
from portal.services.attendance import AttendanceAggregator, current_semester
from portal.services.session import AuthManager
from portal.state import get_state
from portal.utils.security import login_required

attendance_bp = Blueprint('attendance', __name__)


def _aggregator():
    return AttendanceAggregator(get_state().api, g.portal_session,
                                max_workers=current_app.config.get('MAX_CONCURRENT_FETCHES', 8))


def _profile():
    """Cached profile, fetched now if the login-time fetch failed."""
    session = g.portal_session
    if session.profile is None:
        state = get_state()
        AuthManager(state.api, state.store, session).refresh_profile()
    return session.profile or {}


def _student_id(profile):
    student_id = profile.get('enrollmentNo')
    if not student_id:
        raise ValidationError('Profile has no enrollment number')
    return student_id


@attendance_bp.route('/api/courses/overview', methods=['GET'])
@login_required
def semester_overview():
    """
    Course list joined with the attendance summary.

    Optional query: ?semester=<n> (defaults to the profile's batch number).
    Courses missing from the summary come back with
    attendance_state "unknown" and percentage null.
    """
    profile = _profile()
    semester = request.args.get('semester', type=int) or current_semester(profile)
    if not profile.get('enrollmentNo') or semester is None:
        return jsonify({
            'program': None,
            'semesterNumber': None,
            'courses': [],
            'attendanceSummary': None
        }), 200

    overview = _aggregator().get_semester_overview(profile['enrollmentNo'], semester)
    return jsonify(overview), 200


@attendance_bp.route('/api/courses/<course_id>/attendance', methods=['GET'])
@login_required
def course_attendance(course_id):
    """Course summary, every lecture, and the completed-lecture history (oldest first)."""
    detail = _aggregator().get_course_detail(_student_id(_profile()), course_id)
    return jsonify(detail), 200


@attendance_bp.route('/api/courses/slots', methods=['GET'])
@login_required
def course_slots():
    """
    Attendance percentage for each course, fetched concurrently.

    Query: ?course_id=a&course_id=b (defaults to every course this semester).
    A failed course reports state "error" without affecting the others.
    """
    student_id = _student_id(_profile())
    course_ids = request.args.getlist('course_id')
    if not course_ids:
        semester = get_state().api.get_semester_courses(g.portal_session.require_token(), student_id) or {}
        course_ids = [course['courseId'] for course in semester.get('courses') or []]

    slots = _aggregator().fetch_course_slots(student_id, course_ids)
    return jsonify({'slots': slots}), 200
