"""Shared fixtures: an in-memory fake of the remote API and an app built around it."""
import math

import pytest

from portal.app import create_app
from portal.config import TestingConfig
from portal.errors import AuthError, NetworkError

STUDENT_EMAIL = 'student@example.edu'
STUDENT_PASSWORD = 'correct-horse'
ADMIN_EMAIL = 'warden@example.edu'
ADMIN_PASSWORD = 'battery-staple'

PROFILE = {
    'name': 'Test Student',
    'enrollmentNo': 'S2023001',
    'studentPrograms': [{'programBatch': {'batchNumber': 3}}]
}


class FakeApi:
    """Stands in for RemoteApiClient; records every call in ``calls``."""

    def __init__(self):
        self.accounts = {STUDENT_EMAIL: STUDENT_PASSWORD, ADMIN_EMAIL: ADMIN_PASSWORD}
        self.profile = dict(PROFILE)
        self.profile_error = None
        self.calls = []
        self.semester = {
            'program': 'B.Tech CSE',
            'semesterNumber': 3,
            'courses': [
                {'courseId': 'C1', 'name': 'Algorithms'},
                {'courseId': 'C2', 'name': 'Databases'},
                {'courseId': 'C3', 'name': 'Networks'},
            ]
        }
        self.summary = {
            'overall': {'attendancePercentage': 72},
            'byCourse': [
                {'courseId': 'C1', 'attendancePercentage': 0},
                {'courseId': 'C2', 'attendancePercentage': 90},
            ]
        }
        self.course_details = {
            'C1': {
                'course': {'courseId': 'C1', 'name': 'Algorithms'},
                'section': 'A',
                'summary': {'attendancePercentage': 74.5},
                'lectures': [
                    {'id': 3, 'date': '2024-01-10', 'startTime': '2024-01-10T09:00:00Z',
                     'endTime': '2024-01-10T10:00:00Z', 'attendance': 'PRESENT'},
                    {'id': 1, 'date': '2024-01-08', 'startTime': '2024-01-08T09:00:00Z',
                     'endTime': '2024-01-08T10:00:00Z', 'attendance': 'ABSENT'},
                    {'id': 9, 'date': '2999-01-01', 'startTime': '2999-01-01T09:00:00Z',
                     'endTime': '2999-01-01T10:00:00Z', 'attendance': None},
                ]
            },
            'C2': {
                'course': {'courseId': 'C2', 'name': 'Databases'},
                'section': 'B',
                'summary': {'attendancePercentage': 90},
                'lectures': []
            }
        }
        self.gatepasses = []
        self.classrooms = []
        self.events = []
        self.menu = {'BREAKFAST': ['Poha'], 'LUNCH': ['Dal', 'Rice']}

    # ─── Auth ───────────────────────────────────────────────

    def login(self, email, password):
        self.calls.append(('login', email))
        if self.accounts.get(email) != password:
            raise AuthError('Login failed. Please check your credentials.')
        return {'message': 'ok', 'userToken': f'token-{email}', 'role': 'STUDENT', 'permissions': []}

    def request_password_reset(self, email):
        self.calls.append(('request_password_reset', email))

    def get_user_profile(self, token):
        self.calls.append(('get_user_profile', token))
        if self.profile_error:
            raise self.profile_error
        return self.profile

    # ─── Courses & attendance ──────────────────────────────

    def get_semester_courses(self, token, student_id):
        self.calls.append(('get_semester_courses', student_id))
        return self.semester

    def get_attendance_summary(self, token, student_id, semester_number):
        self.calls.append(('get_attendance_summary', student_id, semester_number))
        return self.summary

    def get_course_attendance(self, token, student_id, course_id):
        self.calls.append(('get_course_attendance', course_id))
        if course_id not in self.course_details:
            raise NetworkError('Course not found')
        return self.course_details[course_id]

    # ─── Campus ─────────────────────────────────────────────

    def get_calendar_events(self, token, start_date, end_date):
        self.calls.append(('get_calendar_events', start_date, end_date))
        return self.events

    def get_mess_menu(self, token, date):
        self.calls.append(('get_mess_menu', date))
        return self.menu

    def get_classrooms(self, token, page=1, limit=10, order=None):
        self.calls.append(('get_classrooms', page, limit, order))
        return {'data': self.classrooms[:limit], 'meta': {'totalItems': len(self.classrooms)}}

    # ─── Gatepass ───────────────────────────────────────────

    def create_gatepass(self, token, payload):
        self.calls.append(('create_gatepass', payload))
        gatepass = dict(payload, id=len(self.gatepasses) + 1, status='CREATED', owner=token)
        self.gatepasses.append(gatepass)
        return gatepass

    def update_gatepass(self, token, gatepass_id, action):
        self.calls.append(('update_gatepass', gatepass_id, action))
        for gatepass in self.gatepasses:
            if gatepass['id'] == gatepass_id:
                if gatepass['status'] != 'CREATED':
                    raise NetworkError('Gatepass has already been processed')
                gatepass['status'] = 'APPROVED' if action == 'approve' else 'REJECTED'
                return dict(gatepass)
        raise NetworkError('Gatepass not found')

    def list_all_gatepasses(self, token, params):
        self.calls.append(('list_all_gatepasses', dict(params)))
        items = list(self.gatepasses)
        if params.get('search'):
            needle = params['search'].lower()
            items = [gp for gp in items if needle in gp['reason'].lower() or needle in gp['outLocation'].lower()]
        if params.get('status'):
            items = [gp for gp in items if gp['status'] == params['status']]
        page, limit = int(params['page']), int(params['limit'])
        return {
            'data': items[(page - 1) * limit:page * limit],
            'page': page,
            'limit': limit,
            'total': len(items),
            'totalPages': math.ceil(len(items) / limit)
        }

    def list_my_gatepasses(self, token, params):
        self.calls.append(('list_my_gatepasses', dict(params)))
        return [gp for gp in self.gatepasses if gp['owner'] == token]

    def called(self, name):
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def app(api):
    return create_app(TestingConfig, api=api)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions['portal'].store


@pytest.fixture
def premium_admin(app, store):
    """Seed the admin as a premium user before their first login."""
    with app.app_context():
        store.save_user_data(ADMIN_EMAIL, ADMIN_PASSWORD, is_premium=True)
    return ADMIN_EMAIL


def login(client, email=STUDENT_EMAIL, password=STUDENT_PASSWORD):
    return client.post('/api/auth/login', json={'email': email, 'password': password})
