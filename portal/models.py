"""
SQLAlchemy models for the Student Portal.

Tables:
- UserData: insert-only cache of a user's profile snapshot and premium flag
- LoginLog: append-only record of every login attempt
"""
from datetime import datetime

from portal.database import db


class UserData(db.Model):
    """Cached user record, written once on first successful login."""
    __tablename__ = 'user_data'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=True)  # salt:sha256
    user_profile = db.Column(db.JSON, nullable=True)
    is_premium = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'user_profile': self.user_profile,
            'is_premium': self.is_premium,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }


class LoginLog(db.Model):
    """A single login attempt."""
    __tablename__ = 'login_logs'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    login_status = db.Column(db.String(10), nullable=False)  # SUCCESS / FAILED
    error_message = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)
    attempted_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'login_status': self.login_status,
            'error_message': self.error_message,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'attempted_at': self.attempted_at.isoformat() if self.attempted_at else None
        }
