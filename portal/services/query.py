"""
Search, filter and paginate collections that are already fully in memory
(the user directory and the login logs).
"""
import math
from collections import namedtuple

ALL = 'all'

DIRECTORY_SEARCH_FIELDS = ('name', 'email', 'roleInfo', 'course')
LOGIN_LOG_SEARCH_FIELDS = ('email', 'error_message', 'ip_address')

Page = namedtuple('Page', ['items', 'page', 'page_size', 'total', 'total_pages'])


def _get(item, field):
    if isinstance(item, dict):
        return item.get(field)
    return getattr(item, field, None)


def matches_search(item, search, fields):
    if not search:
        return True
    needle = search.lower()
    return any(needle in str(_get(item, field) or '').lower() for field in fields)


def matches_category(value, selected):
    return not selected or selected == ALL or value == selected


def filter_directory(users, search='', course=ALL, batch=ALL, user_type=ALL):
    return [
        user for user in users
        if matches_search(user, search, DIRECTORY_SEARCH_FIELDS)
        and matches_category(_get(user, 'course'), course)
        and matches_category(_get(user, 'batch'), batch)
        and matches_category(_get(user, 'userType'), user_type)
    ]


def filter_login_logs(logs, search='', status=ALL):
    return [
        log for log in logs
        if matches_search(log, search, LOGIN_LOG_SEARCH_FIELDS)
        and matches_category(_get(log, 'login_status'), status)
    ]


def unique_values(items, field):
    """Sorted distinct non-empty values, for filter drop-downs."""
    return sorted({_get(item, field) for item in items if _get(item, field)})


def count_pages(total, page_size):
    return math.ceil(total / page_size) if page_size > 0 else 0


def paginate(items, page, page_size):
    total = len(items)
    total_pages = count_pages(total, page_size)
    page = max(1, min(page, max(total_pages, 1)))
    start = (page - 1) * page_size
    return Page(items[start:start + page_size], page, page_size, total, total_pages)


def page_window(current, total_pages, size=5):
    """
    Page numbers for the pager buttons.

    Shows every page when there are at most ``size`` of them, otherwise a
    window centred on ``current`` and clamped to [1, total_pages]:

    >>> page_window(10, 12)
    [8, 9, 10, 11, 12]
    """
    if total_pages <= size:
        return list(range(1, total_pages + 1))
    half = size // 2
    if current <= half + 1:
        first = 1
    elif current >= total_pages - half:
        first = total_pages - size + 1
    else:
        first = current - half
    return list(range(first, first + size))


def login_log_stats(logs):
    """Headline counters, always over the unfiltered logs."""
    total = len(logs)
    successful = sum(1 for log in logs if _get(log, 'login_status') == 'SUCCESS')
    failed = sum(1 for log in logs if _get(log, 'login_status') == 'FAILED')
    return {
        'total': total,
        'successful': successful,
        'failed': failed,
        'unique_emails': len({_get(log, 'email') for log in logs}),
        'success_rate': round(successful / total * 100, 1) if total else 0.0
    }


class QueryState:
    """Current page plus filter values. Any filter change goes back to page 1."""

    def __init__(self, page_size, **filters):
        self.page_size = page_size
        self.page = 1
        self.defaults = dict(filters)
        self.filters = dict(filters)

    def set_filter(self, name, value):
        if self.filters.get(name) != value:
            self.filters[name] = value
            self.page = 1

    def update(self, **filters):
        for name, value in filters.items():
            self.set_filter(name, value)

    def clear(self):
        self.filters = dict(self.defaults)
        self.page = 1

    def go_to(self, page):
        self.page = max(1, page)

    def sync(self, args):
        """Apply request arguments: new filter values reset the page, otherwise ?page= is honoured."""
        filters = {name: args.get(name) or default for name, default in self.defaults.items()}
        if filters != self.filters:
            self.update(**filters)
            return self
        try:
            self.go_to(int(args.get('page', self.page)))
        except (TypeError, ValueError):
            pass
        return self

    def apply(self, items):
        page = paginate(items, self.page, self.page_size)
        self.page = page.page
        return page
