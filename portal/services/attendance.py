"""
Attendance aggregation over the remote API.

Percentages always come verbatim from the API. This module only joins,
filters, sorts and classifies them.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone

from portal.errors import PortalError
from portal.utils.dates import parse_timestamp

logger = logging.getLogger(__name__)

ON_TRACK = 'On Track'
AT_RISK = 'At Risk'

TIER_GOOD = 'good'
TIER_WARNING = 'warning'
TIER_CRITICAL = 'critical'

# A course missing from the summary is "unknown", never 0%
STATE_KNOWN = 'known'
STATE_UNKNOWN = 'unknown'

SLOT_LOADING = 'loading'
SLOT_SUCCESS = 'success'
SLOT_ERROR = 'error'


def binary_risk_policy(percentage):
    """Course cards and overall summary: 75% cut-off."""
    return ON_TRACK if percentage >= 75 else AT_RISK


def tiered_risk_policy(percentage):
    """Progress indicators: good / warning / critical."""
    if percentage >= 85:
        return TIER_GOOD
    if percentage >= 65:
        return TIER_WARNING
    return TIER_CRITICAL


def current_semester(profile):
    try:
        return profile['studentPrograms'][0]['programBatch']['batchNumber']
    except (KeyError, IndexError, TypeError):
        return None


def is_completed(lecture, now=None):
    now = now or datetime.now(timezone.utc)
    end = parse_timestamp(lecture.get('endTime'))
    return end is not None and end < now


def _lecture_sort_key(lecture):
    start = parse_timestamp(lecture.get('startTime'))
    return (lecture.get('date') or '', start or datetime.min.replace(tzinfo=timezone.utc))


def display_percentage(value):
    """Half-up rounding for slot display."""
    return int(math.floor(float(value) + 0.5))


def join_courses(courses, by_course):
    """Attach each course's summary entry, keyed by courseId."""
    summaries = {entry.get('courseId'): entry for entry in by_course or []}
    joined = []
    for course in courses or []:
        entry = summaries.get(course.get('courseId'))
        item = dict(course)
        if entry is None:
            item.update({
                'attendance_state': STATE_UNKNOWN,
                'percentage': None,
                'status': None,
                'tier': None,
                'summary': None
            })
        else:
            percentage = entry.get('attendancePercentage', 0)
            item.update({
                'attendance_state': STATE_KNOWN,
                'percentage': percentage,
                'status': binary_risk_policy(percentage),
                'tier': tiered_risk_policy(percentage),
                'summary': entry
            })
        joined.append(item)
    return joined


class AttendanceAggregator:

    def __init__(self, api, session, max_workers=8, clock=None):
        self.api = api
        self.session = session
        self.max_workers = max_workers
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def get_semester_overview(self, student_id, semester_number):
        token = self.session.require_token()
        with ThreadPoolExecutor(max_workers=2) as executor:
            courses_future = executor.submit(self.api.get_semester_courses, token, student_id)
            summary_future = executor.submit(self.api.get_attendance_summary, token, student_id, semester_number)
            semester = courses_future.result() or {}
            summary = summary_future.result() or {}

        overall = summary.get('overall')
        if overall is not None:
            overall = dict(overall)
            overall['status'] = binary_risk_policy(overall.get('attendancePercentage', 0))

        by_course = []
        for entry in summary.get('byCourse') or []:
            entry = dict(entry)
            entry['status'] = binary_risk_policy(entry.get('attendancePercentage', 0))
            entry['tier'] = tiered_risk_policy(entry.get('attendancePercentage', 0))
            by_course.append(entry)

        return {
            'program': semester.get('program'),
            'semesterNumber': semester.get('semesterNumber', semester_number),
            'courses': join_courses(semester.get('courses'), by_course),
            'attendanceSummary': {'overall': overall, 'byCourse': by_course}
        }

    def get_course_detail(self, student_id, course_id):
        token = self.session.require_token()
        detail = self.api.get_course_attendance(token, student_id, course_id) or {}
        now = self.clock()

        lectures = []
        for lecture in detail.get('lectures') or []:
            lecture = dict(lecture)
            lecture['isCompleted'] = is_completed(lecture, now)
            lectures.append(lecture)

        history = sorted((l for l in lectures if l['isCompleted']), key=_lecture_sort_key)

        summary = detail.get('summary')
        if summary is not None:
            summary = dict(summary)
            percentage = summary.get('attendancePercentage', 0)
            summary['status'] = binary_risk_policy(percentage)
            summary['tier'] = tiered_risk_policy(percentage)

        return {
            'course': detail.get('course'),
            'section': detail.get('section'),
            'summary': summary,
            'lectures': lectures,
            'history': history
        }

    def _fetch_slot(self, token, student_id, course_id):
        try:
            detail = self.api.get_course_attendance(token, student_id, course_id) or {}
            percentage = display_percentage(detail['summary']['attendancePercentage'])
        except PortalError as e:
            logger.warning("[ATTENDANCE] Failed to fetch attendance for course %s: %s", course_id, e.message)
            return {'courseId': course_id, 'state': SLOT_ERROR, 'percentage': None, 'tier': None, 'error': e.message}
        except (KeyError, TypeError, ValueError):
            return {'courseId': course_id, 'state': SLOT_ERROR, 'percentage': None, 'tier': None,
                    'error': 'Malformed attendance response'}
        return {'courseId': course_id, 'state': SLOT_SUCCESS, 'percentage': percentage,
                'tier': tiered_risk_policy(percentage), 'error': None}

    def fetch_course_slots(self, student_id, course_ids, on_slot=None):
        """
        Fetch every course's attendance concurrently.

        Returns {courseId: slot}. Each slot is written by exactly one fetch;
        ``on_slot`` is called once per slot as it completes.
        """
        token = self.session.require_token()
        slots = {course_id: {'courseId': course_id, 'state': SLOT_LOADING, 'percentage': None,
                             'tier': None, 'error': None}
                 for course_id in course_ids}
        if not slots:
            return slots

        workers = max(1, min(self.max_workers, len(slots)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self._fetch_slot, token, student_id, course_id): course_id
                       for course_id in slots}
            for future in as_completed(futures):
                slot = future.result()
                slots[futures[future]] = slot
                if on_slot is not None:
                    on_slot(slot)
        return slots
