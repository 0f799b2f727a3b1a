"""
Client for the remote education API (REST + JSON, bearer-token auth).

Every authenticated call takes the bearer token explicitly; the client keeps
no session state of its own.
"""
import logging

import requests

from portal.errors import AuthError, NetworkError

logger = logging.getLogger(__name__)


def _error_message(response, fallback):
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get('message') or body.get('error') or fallback
    return fallback


class RemoteApiClient:

    def __init__(self, base_url, timeout=15, http=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update({
            'Content-Type': 'application/json',
            'accept': 'application/json',
        })

    def _request(self, method, path, token=None, auth_failure=None, **kwargs):
        headers = {}
        if token:
            headers['Authorization'] = f'Bearer {token}'
        url = f'{self.base_url}{path}'
        try:
            response = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning("[API] %s %s failed: %s", method, path, e)
            raise NetworkError(f'Could not reach the portal API: {e}')

        if response.status_code == 401 or (auth_failure and 400 <= response.status_code < 500):
            raise AuthError(_error_message(response, auth_failure or 'Session expired, please sign in again'))
        if response.status_code >= 400:
            message = _error_message(response, f'Request failed with status {response.status_code}')
            logger.warning("[API] %s %s -> %s %s", method, path, response.status_code, message)
            raise NetworkError(message)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("[API] %s %s returned a non-JSON body", method, path)
            raise NetworkError('Malformed response from the portal API')

    # ─── Auth ───────────────────────────────────────────────

    def login(self, email, password):
        """Returns {message, userToken, sessionToken, role, permissions}."""
        return self._request('POST', '/auth/login', json={'email': email, 'password': password},
                             auth_failure='Login failed. Please check your credentials.')

    def request_password_reset(self, email):
        self._request('POST', '/auth/reset-password/request', json={'email': email})

    def get_user_profile(self, token):
        return self._request('GET', '/user', token=token)

    # ─── Courses & attendance ──────────────────────────────

    def get_semester_courses(self, token, student_id):
        return self._request('GET', f'/students/{student_id}/academics/semesters/-1', token=token)

    def get_attendance_summary(self, token, student_id, semester_number):
        return self._request('GET', f'/students/{student_id}/attendance/semesters/{semester_number}', token=token)

    def get_course_attendance(self, token, student_id, course_id):
        return self._request('GET', f'/students/{student_id}/courses/{course_id}/attendance', token=token)

    # ─── Campus ─────────────────────────────────────────────

    def get_calendar_events(self, token, start_date, end_date):
        """Dates are YYYY-MM-DD strings."""
        return self._request('GET', '/calendar', token=token,
                             params={'startDate': start_date, 'endDate': end_date})

    def get_mess_menu(self, token, date):
        """date is a DD-MM-YYYY string."""
        return self._request('GET', '/mess', token=token, params={'date': date})

    def get_classrooms(self, token, page=1, limit=10, order=None):
        params = {'page': page, 'limit': limit}
        if order:
            params['order'] = order
        return self._request('GET', '/option/classroom', token=token, params=params)

    # ─── Gatepass ───────────────────────────────────────────

    def create_gatepass(self, token, payload):
        return self._request('POST', '/gatepass', token=token, json=payload)

    def update_gatepass(self, token, gatepass_id, action):
        return self._request('PATCH', '/gatepass', token=token, json={'id': gatepass_id, 'action': action})

    def list_all_gatepasses(self, token, params):
        return self._request('GET', '/gatepass', token=token, params=params)

    def list_my_gatepasses(self, token, params):
        return self._request('GET', '/gatepass/self', token=token, params=params)
