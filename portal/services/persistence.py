"""
Insert-only persistence for cached user records and login logs.

Nothing here issues an UPDATE or DELETE. Failures never propagate: they are
logged and reported through ``SaveResult`` so the calling flow (login,
gatepass action) carries on.
"""
import logging
from collections import namedtuple
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from portal.database import db
from portal.models import LoginLog, UserData
from portal.utils.security import hash_secret

logger = logging.getLogger(__name__)

SaveResult = namedtuple('SaveResult', ['success', 'error', 'already_exists'])

LOGIN_SUCCESS = 'SUCCESS'
LOGIN_FAILED = 'FAILED'


class PortalStore:

    def user_exists(self, email):
        """Returns False when the lookup itself fails, so the insert is attempted."""
        try:
            return db.session.query(UserData.id).filter_by(email=email).first() is not None
        except SQLAlchemyError as e:
            logger.warning("[DB] Error checking if user exists: %s", e)
            return False

    def save_user_data(self, email, password, user_profile=None, is_premium=False):
        if self.user_exists(email):
            logger.info("[DB] User %s already exists, skipping insert", email)
            return SaveResult(True, None, True)

        now = datetime.utcnow()
        row = UserData(
            email=email,
            password_hash=hash_secret(password) if password else None,
            user_profile=user_profile,
            is_premium=bool(is_premium),
            created_at=now,
            updated_at=now
        )
        try:
            db.session.add(row)
            db.session.commit()
        except IntegrityError:
            # Lost the race against a concurrent first login for this email
            db.session.rollback()
            logger.info("[DB] User %s inserted concurrently, treating as existing", email)
            return SaveResult(True, None, True)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("[DB] Failed to save user data for %s: %s", email, e)
            return SaveResult(False, str(e), False)

        logger.info("[DB] User data inserted for %s (profile=%s)", email, user_profile is not None)
        return SaveResult(True, None, False)

    def is_premium(self, email):
        try:
            row = db.session.query(UserData.is_premium).filter_by(email=email).first()
        except SQLAlchemyError as e:
            logger.warning("[DB] Error checking premium status: %s", e)
            return False
        return bool(row and row[0])

    def save_login_log(self, email, status, error_message=None, ip_address=None, user_agent=None):
        entry = LoginLog(
            email=email,
            login_status=status,
            error_message=error_message,
            ip_address=ip_address,
            user_agent=user_agent,
            attempted_at=datetime.utcnow()
        )
        try:
            db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("[DB] Failed to save login log for %s: %s", email, e)
            return SaveResult(False, str(e), False)
        return SaveResult(True, None, False)

    def get_login_logs(self):
        """All login logs, newest first."""
        return LoginLog.query.order_by(LoginLog.attempted_at.desc(), LoginLog.id.desc()).all()
