# backend/eduattend/models/attendance_session.py
"""Attendance session opened by a class representative."""
from sqlalchemy import event
from sqlalchemy.orm import object_session
from eduattend import db
from eduattend.models.base import BaseModel
from eduattend.models.events import queue_broadcast
from eduattend.services.broadcast_service import BroadcastEvent

class AttendanceSession(BaseModel):
    """A live attendance session identified by a short code.

    Sessions are never deleted; a closed session is the archival record the
    reports are built from.
    """

    __tablename__ = 'attendance_sessions'
    __table_args__ = (
        # One active session per issuer.
        db.Index(
            'uq_attendance_sessions_active_issuer', 'issuer_id',
            unique=True,
            sqlite_where=db.text('is_active = 1'),
            postgresql_where=db.text('is_active')
        ),
        # Codes only need to be unique while active; closed codes are recycled.
        db.Index(
            'uq_attendance_sessions_active_code', 'session_code',
            unique=True,
            sqlite_where=db.text('is_active = 1'),
            postgresql_where=db.text('is_active')
        ),
        db.Index('ix_attendance_sessions_audience', 'department', 'level', 'is_active'),
    )

    course_code = db.Column(db.String(20), nullable=False)
    lecturer_name = db.Column(db.String(255), nullable=False)

    # Issuer, captured at open time
    issuer_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False, index=True)
    issuer_name = db.Column(db.String(255), nullable=False)

    # Audience
    department = db.Column(db.String(100), nullable=False)
    level = db.Column(db.String(50), nullable=False)

    session_code = db.Column(db.String(16), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    closed_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    issuer = db.relationship('Profile', backref=db.backref('issued_sessions', lazy='dynamic'))
    logs = db.relationship('AttendanceLog', backref='session', lazy='dynamic')

    def is_owned_by(self, profile) -> bool:
        return profile is not None and self.issuer_id == profile.id

    def matches_audience(self, profile) -> bool:
        return self.department == profile.department and self.level == profile.level

    def to_public_dict(self) -> dict:
        """Fields safe to broadcast to students; the code is never broadcast."""
        return self.to_dict(exclude=['session_code', 'updated_at'])

    def __repr__(self) -> str:
        state = 'active' if self.is_active else 'closed'
        return f'<AttendanceSession {self.id} {self.course_code} {state}>'

@event.listens_for(AttendanceSession, 'after_insert')
def _queue_session_opened(mapper, connection, target):
    queue_broadcast(object_session(target), BroadcastEvent.session_opened(target))
