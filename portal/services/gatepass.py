"""
Gatepass lifecycle: create, list, approve, reject.

CREATED --approve--> APPROVED
CREATED --reject---> REJECTED

The remote API owns the state. Nothing is transitioned locally: after a
mutation the caller refetches the list.
"""
import logging

from portal.errors import ValidationError
from portal.utils.dates import parse_timestamp

logger = logging.getLogger(__name__)

STATUS_CREATED = 'CREATED'
STATUS_APPROVED = 'APPROVED'
STATUS_REJECTED = 'REJECTED'
STATUSES = (STATUS_CREATED, STATUS_APPROVED, STATUS_REJECTED)

ACTION_APPROVE = 'approve'
ACTION_REJECT = 'reject'

REQUIRED_FIELDS = ('outTime', 'inTime', 'outLocation', 'reason')


def parse_gatepass_id(value):
    """Gatepass ids must be positive integers."""
    if isinstance(value, bool):
        raise ValidationError('Gatepass ID must be a valid number')
    if isinstance(value, int):
        gatepass_id = value
    else:
        text = str(value).strip() if value is not None else ''
        if not text:
            raise ValidationError('Please enter a gatepass ID')
        try:
            gatepass_id = int(text, 10)
        except ValueError:
            raise ValidationError('Gatepass ID must be a valid number')
    if gatepass_id <= 0:
        raise ValidationError('Gatepass ID must be a positive number')
    return gatepass_id


def is_actionable(gatepass):
    return (gatepass.get('status') or '').upper() == STATUS_CREATED


def validate_new_gatepass(out_time, in_time, out_location, reason):
    payload = {
        'outTime': (out_time or '').strip(),
        'inTime': (in_time or '').strip(),
        'outLocation': (out_location or '').strip(),
        'reason': (reason or '').strip(),
    }
    missing = [field for field in REQUIRED_FIELDS if not payload[field]]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")

    out_at = parse_timestamp(payload['outTime'])
    in_at = parse_timestamp(payload['inTime'])
    if out_at and in_at and out_at >= in_at:
        raise ValidationError('inTime must be after outTime')
    return payload


class GatepassManager:

    def __init__(self, api, session):
        self.api = api
        self.session = session

    def create(self, out_time, in_time, out_location, reason):
        payload = validate_new_gatepass(out_time, in_time, out_location, reason)
        token = self.session.require_token()
        gatepass = self.api.create_gatepass(token, payload)
        logger.info("[GATEPASS] %s created gatepass %s", self.session.email, (gatepass or {}).get('id'))
        return gatepass

    def _act(self, gatepass_id, action):
        gatepass_id = parse_gatepass_id(gatepass_id)
        token = self.session.require_token()
        result = self.api.update_gatepass(token, gatepass_id, action)
        logger.info("[GATEPASS] %s %sd gatepass %s", self.session.email, action, gatepass_id)
        return result

    def approve(self, gatepass_id):
        return self._act(gatepass_id, ACTION_APPROVE)

    def reject(self, gatepass_id):
        return self._act(gatepass_id, ACTION_REJECT)

    def list_mine(self, sort_by='createdAt', order='desc'):
        token = self.session.require_token()
        return self.api.list_my_gatepasses(token, {'sortBy': sort_by, 'order': order}) or []

    def list_all(self, page=1, limit=10, search=None, status=None, sort_by='outTime', order='desc'):
        token = self.session.require_token()
        params = {'page': page, 'limit': limit, 'sortBy': sort_by, 'order': order}
        if search:
            params['search'] = search
        if status and status.lower() != 'all':
            params['status'] = status
        return self.api.list_all_gatepasses(token, params)
