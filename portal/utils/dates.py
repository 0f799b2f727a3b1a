"""
Date helpers for the remote API.

The calendar endpoint takes YYYY-MM-DD while the mess endpoint takes
DD-MM-YYYY; keep them separate.
"""
from datetime import datetime, timedelta, timezone

API_DATE_FORMAT = '%Y-%m-%d'
MESS_DATE_FORMAT = '%d-%m-%Y'

# (meal, start hour inclusive, end hour exclusive)
MEAL_WINDOWS = (
    ('BREAKFAST', 7, 10),
    ('LUNCH', 12, 15),
    ('SNACKS', 17, 18),
    ('DINNER', 19, 21),
)


def parse_timestamp(value):
    """ISO-8601 string to an aware datetime; naive values are taken as UTC."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_api_date(day):
    return day.strftime(API_DATE_FORMAT)


def format_mess_date(day):
    return day.strftime(MESS_DATE_FORMAT)


def parse_api_date(value):
    return datetime.strptime(value, API_DATE_FORMAT).date()


def week_range(day):
    """Sunday..Saturday week containing ``day``."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def current_meal(now):
    for meal, start, end in MEAL_WINDOWS:
        if start <= now.hour < end:
            return meal
    return None
