# backend/eduattend/models/attendance_log.py
"""Attendance log: one signed record per student per session."""
from datetime import datetime
from sqlalchemy import event
from sqlalchemy.orm import object_session
from eduattend import db
from eduattend.models.base import BaseModel
from eduattend.models.events import queue_broadcast
from eduattend.services.broadcast_service import BroadcastEvent

class AttendanceLog(BaseModel):
    """Append-only attendance record.

    Student fields are copied from the profile when the row is written so that
    later profile edits leave historical reports untouched.
    """

    __tablename__ = 'attendance_logs'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_logs_session_student'),
    )

    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('profiles.id'), nullable=False, index=True)

    # Denormalized student details
    student_name = db.Column(db.String(255), nullable=False)
    matric_number = db.Column(db.String(50), nullable=False)
    department = db.Column(db.String(100), nullable=False)
    level = db.Column(db.String(50), nullable=False)

    signature_ref = db.Column(db.String(255), nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    student = db.relationship('Profile', backref=db.backref('attendance_logs', lazy='dynamic'))

    def to_dict(self, exclude: list = None) -> dict:
        exclude = (exclude or []) + ['updated_at']
        return super().to_dict(exclude=exclude)

    def __repr__(self) -> str:
        return f'<AttendanceLog {self.session_id}-{self.student_id}>'

@event.listens_for(AttendanceLog, 'before_update')
def _reject_log_update(mapper, connection, target):
    raise ValueError("Attendance logs are immutable")

@event.listens_for(AttendanceLog, 'after_insert')
def _queue_log_broadcast(mapper, connection, target):
    queue_broadcast(object_session(target), BroadcastEvent.attendance_logged(target))
