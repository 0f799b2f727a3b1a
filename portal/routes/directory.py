"""
Directory and login-log routes. Both collections are loaded in full and
filtered/paginated here.
"""
import json
import logging

from flask import Blueprint, current_app, g, jsonify, request

from portal.errors import PortalError
from portal.services.query import (
    ALL, QueryState, filter_directory, filter_login_logs, login_log_stats, page_window, unique_values
)
from portal.state import get_state
from portal.utils.security import login_required

directory_bp = Blueprint('directory', __name__)

logger = logging.getLogger(__name__)


def load_directory(path):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f).get('data') or []
    except (OSError, ValueError) as e:
        logger.warning("[DIRECTORY] Error loading %s: %s", path, e)
        raise PortalError('Directory data is unavailable')


def _query_state(name, page_size, **defaults):
    state = g.portal_session.queries.setdefault(name, QueryState(page_size, **defaults))
    return state.sync(request.args)


@directory_bp.route('/api/directory', methods=['GET'])
@login_required
def directory():
    """
    Search the user directory.

    Query: ?search=&course=&batch=&userType=&page=
    Search matches name, email, role info and course, case-insensitively.
    """
    users = load_directory(current_app.config['DIRECTORY_DATA_PATH'])
    state = _query_state('directory', current_app.config['DIRECTORY_PAGE_SIZE'],
                         search='', course=ALL, batch=ALL, userType=ALL)

    filtered = filter_directory(
        users,
        search=state.filters['search'],
        course=state.filters['course'],
        batch=state.filters['batch'],
        user_type=state.filters['userType']
    )
    page = state.apply(filtered)

    return jsonify({
        'users': page.items,
        'page': page.page,
        'total_pages': page.total_pages,
        'page_window': page_window(page.page, page.total_pages),
        'showing': len(filtered),
        'total': len(users),
        'filters': {
            'courses': unique_values(users, 'course'),
            'batches': unique_values(users, 'batch'),
            'userTypes': unique_values(users, 'userType')
        }
    }), 200


@directory_bp.route('/api/login-logs', methods=['GET'])
@login_required
def login_logs():
    """
    Login attempts, newest first.

    Query: ?search=&status=SUCCESS|FAILED|all&page=
    The stats block covers every log; "showing" counts the filtered ones.
    """
    logs = [log.to_dict() for log in get_state().store.get_login_logs()]
    state = _query_state('login_logs', current_app.config['LOGIN_LOG_PAGE_SIZE'], search='', status=ALL)

    filtered = filter_login_logs(logs, search=state.filters['search'], status=state.filters['status'])
    page = state.apply(filtered)

    return jsonify({
        'logs': page.items,
        'page': page.page,
        'total_pages': page.total_pages,
        'page_window': page_window(page.page, page.total_pages),
        'showing': len(filtered),
        'total': len(logs),
        'stats': login_log_stats(logs)
    }), 200
