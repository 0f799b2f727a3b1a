"""
Gatepass routes: create, list own, list all, approve, reject.
"""
import logging

from flask import Blueprint, current_app, g, jsonify, request

from portal.errors import NetworkError
from portal.services.gatepass import ACTION_APPROVE, ACTION_REJECT, GatepassManager, is_actionable
from portal.services.query import ALL, QueryState, page_window
from portal.state import get_state
from portal.utils.security import login_required, premium_required

gatepass_bp = Blueprint('gatepass', __name__)

logger = logging.getLogger(__name__)

APPROVERS_ROOM = 'gatepass_approvers'


def _manager():
    return GatepassManager(get_state().api, g.portal_session)


def _query_state():
    return g.portal_session.queries.setdefault(
        'gatepasses', QueryState(current_app.config['GATEPASS_PAGE_SIZE'], search='', status=ALL))


def _fetch_page(state):
    return _manager().list_all(
        page=state.page,
        limit=state.page_size,
        search=state.filters['search'],
        status=state.filters['status']
    ) or {}


def _list_page(state):
    listing = _fetch_page(state)
    last_page = max(1, listing.get('totalPages') or 0)
    # The remote list can shrink between requests
    if state.page > last_page:
        state.go_to(last_page)
        listing = _fetch_page(state)
    items = [dict(gp, actionable=is_actionable(gp)) for gp in listing.get('data') or []]
    total_pages = listing.get('totalPages', 0)
    return {
        'data': items,
        'page': listing.get('page', state.page),
        'limit': listing.get('limit', state.page_size),
        'total': listing.get('total', len(items)),
        'totalPages': total_pages,
        'page_window': page_window(state.page, total_pages)
    }


def _notify(action, gatepass_id):
    get_state().broadcast('gatepasses_changed', {'action': action, 'id': gatepass_id}, APPROVERS_ROOM)


@gatepass_bp.route('/api/gatepasses', methods=['POST'])
@login_required
def create_gatepass():
    """
    Request a new gatepass.

    Expects JSON:
    {
        "outTime": "2024-01-01T08:00",
        "inTime": "2024-01-01T18:00",
        "outLocation": "Market",
        "reason": "Shopping"
    }
    """
    data = request.get_json(silent=True) or {}
    gatepass = _manager().create(
        data.get('outTime'),
        data.get('inTime'),
        data.get('outLocation'),
        data.get('reason')
    )
    _notify('create', (gatepass or {}).get('id'))
    return jsonify({
        'message': 'Gatepass created',
        'gatepass': gatepass
    }), 201


@gatepass_bp.route('/api/gatepasses/mine', methods=['GET'])
@login_required
def my_gatepasses():
    """The signed-in student's gatepasses, newest first, unpaginated."""
    gatepasses = _manager().list_mine(
        sort_by=request.args.get('sortBy', 'createdAt'),
        order=request.args.get('order', 'desc')
    )
    return jsonify({'gatepasses': gatepasses}), 200


@gatepass_bp.route('/api/gatepasses', methods=['GET'])
@premium_required
def all_gatepasses():
    """
    Every student's gatepasses, paginated by the remote API.

    Query: ?page=&search=&status=. A changed search or status always
    starts again from page 1.
    """
    state = _query_state().sync(request.args)
    return jsonify(_list_page(state)), 200


def _act(gatepass_id, action):
    manager = _manager()
    result = manager.approve(gatepass_id) if action == ACTION_APPROVE else manager.reject(gatepass_id)
    _notify(action, gatepass_id)

    # Refetch rather than patching locally; the list is stale until this succeeds
    try:
        listing = _list_page(_query_state())
    except NetworkError as e:
        logger.warning("[GATEPASS] Refetch after %s failed: %s", action, e.message)
        listing = None

    return jsonify({
        'message': f'Gatepass {action}d',
        'gatepass': result,
        'gatepasses': listing
    }), 200


@gatepass_bp.route('/api/gatepasses/<gatepass_id>/approve', methods=['POST'])
@premium_required
def approve_gatepass(gatepass_id):
    return _act(gatepass_id, ACTION_APPROVE)


@gatepass_bp.route('/api/gatepasses/<gatepass_id>/reject', methods=['POST'])
@premium_required
def reject_gatepass(gatepass_id):
    return _act(gatepass_id, ACTION_REJECT)
