"""
Campus information: calendar events, mess menu and classrooms.
"""
import logging

from portal.services.query import ALL, matches_category
from portal.utils.dates import format_api_date, format_mess_date, parse_timestamp, week_range

logger = logging.getLogger(__name__)

VIEW_DAY = 'day'
VIEW_WEEK = 'week'


def events_on(events, day):
    """Events whose start falls on ``day``."""
    selected = []
    for event in events:
        start = parse_timestamp(event.get('start'))
        if start is not None and start.date() == day:
            selected.append(event)
    return selected


def room_building(room):
    return ((room.get('floor') or {}).get('building') or {}).get('name')


def room_floor(room):
    return (room.get('floor') or {}).get('floorNumber')


def _matches_room_search(room, needle):
    return needle in str(room.get('roomNumber') or '').lower() or needle in (room_building(room) or '').lower()


def filter_classrooms(rooms, search='', building=ALL, floor=ALL, projector=ALL):
    selected = []
    for room in rooms:
        if search and not _matches_room_search(room, search.lower()):
            continue
        if not matches_category(room_building(room), building):
            continue
        if floor not in (None, '', ALL) and str(room_floor(room)) != str(floor):
            continue
        if projector not in (None, '', ALL):
            wants_projector = projector in ('yes', 'true', True)
            if bool(room.get('hasProjector')) != wants_projector:
                continue
        selected.append(room)
    return selected


class CampusInfo:

    def __init__(self, api, session):
        self.api = api
        self.session = session

    def calendar_events(self, start, end):
        token = self.session.require_token()
        return self.api.get_calendar_events(token, format_api_date(start), format_api_date(end)) or []

    def calendar_view(self, day, view=VIEW_WEEK):
        if view == VIEW_DAY:
            start = end = day
        else:
            start, end = week_range(day)
        events = self.calendar_events(start, end)
        return {
            'view': view,
            'start': format_api_date(start),
            'end': format_api_date(end),
            'events': events,
            'selected_day_events': events_on(events, day)
        }

    def mess_menu(self, day):
        token = self.session.require_token()
        return self.api.get_mess_menu(token, format_mess_date(day))

    def classrooms(self):
        """First page tells us the total, then everything comes in one page."""
        token = self.session.require_token()
        first = self.api.get_classrooms(token, page=1, limit=10) or {}
        total = (first.get('meta') or {}).get('totalItems') or 0
        if total <= len(first.get('data') or []):
            return first.get('data') or []
        everything = self.api.get_classrooms(token, page=1, limit=total, order='asc') or {}
        return everything.get('data') or []
