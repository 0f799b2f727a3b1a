"""
Campus routes: academic calendar, mess menu, classrooms.
"""
from datetime import date, datetime

from flask import Blueprint, g, jsonify, request

from portal.errors import ValidationError
from portal.services.campus import VIEW_DAY, VIEW_WEEK, CampusInfo, filter_classrooms, room_building, room_floor
from portal.services.query import ALL
from portal.state import get_state
from portal.utils.dates import current_meal, parse_api_date
from portal.utils.security import login_required

campus_bp = Blueprint('campus', __name__)


def _campus():
    return CampusInfo(get_state().api, g.portal_session)


def _requested_day():
    value = request.args.get('date')
    if not value:
        return date.today()
    try:
        return parse_api_date(value)
    except ValueError:
        raise ValidationError('date must be YYYY-MM-DD')


@campus_bp.route('/api/calendar', methods=['GET'])
@login_required
def calendar():
    """
    Calendar events for a day or the Sunday-Saturday week around it.

    Query: ?date=YYYY-MM-DD&view=day|week
    """
    view = request.args.get('view', VIEW_WEEK)
    if view not in (VIEW_DAY, VIEW_WEEK):
        raise ValidationError('view must be "day" or "week"')
    return jsonify(_campus().calendar_view(_requested_day(), view)), 200


@campus_bp.route('/api/mess', methods=['GET'])
@login_required
def mess_menu():
    """Menu for ?date=YYYY-MM-DD; for today the meal being served is marked too."""
    day = _requested_day()
    now = datetime.now()
    return jsonify({
        'date': day.isoformat(),
        'menu': _campus().mess_menu(day),
        'current_meal': current_meal(now) if day == now.date() else None
    }), 200


@campus_bp.route('/api/classrooms', methods=['GET'])
@login_required
def classrooms():
    """
    Every classroom, filtered here.

    Query: ?search=&building=&floor=&projector=yes|no|all
    """
    rooms = _campus().classrooms()
    filtered = filter_classrooms(
        rooms,
        search=request.args.get('search', ''),
        building=request.args.get('building', ALL),
        floor=request.args.get('floor', ALL),
        projector=request.args.get('projector', ALL)
    )
    buildings = sorted({room_building(r) for r in rooms} - {None})
    floors = sorted({room_floor(r) for r in rooms} - {None})
    return jsonify({
        'classrooms': filtered,
        'showing': len(filtered),
        'total': len(rooms),
        'filters': {
            'buildings': buildings,
            'floors': floors
        }
    }), 200
