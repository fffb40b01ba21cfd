# backend/eduattend/services/session_service.py
"""Session controller: opening and closing live attendance sessions."""
import logging
from datetime import datetime
from typing import List, Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import object_session

from eduattend import db
from eduattend.models.attendance_session import AttendanceSession
from eduattend.models.events import queue_broadcast
from eduattend.models.profile import Profile
from eduattend.services.broadcast_service import BroadcastEvent
from eduattend.services.code_service import CodeGenerator
from eduattend.utils.errors import (
    AlreadyActive, AlreadyClosed, CodeExhausted, NotFound, NotOwner,
    PermissionDenied, ValidationError
)
from eduattend.utils.helpers import storage_guard
from eduattend.utils.validators import Validator

logger = logging.getLogger(__name__)

class SessionService:
    """Owns the Active -> Closed transition of attendance sessions.

    The one-active-session-per-issuer rule and active code uniqueness are
    enforced by partial unique indexes; the checks done here only give a
    friendlier error in the common, uncontended case.
    """

    @staticmethod
    def open_session(issuer: Profile, course_code: str, lecturer_name: str) -> AttendanceSession:
        """Open a session for the issuer's department and level.

        The session_opened event is published once the insert commits.
        """
        if not issuer.is_hoc:
            raise PermissionDenied("Only class representatives can open attendance sessions")

        course_code = (course_code or '').strip().upper()
        lecturer_name = (lecturer_name or '').strip()
        if not Validator.validate_course_code(course_code):
            raise ValidationError("Invalid course code (e.g. CSC402)")
        if not Validator.validate_name(lecturer_name)["is_valid"]:
            raise ValidationError("Lecturer name is required")

        generator = CodeGenerator.from_config(current_app.config)
        max_attempts = current_app.config.get('SESSION_CODE_MAX_ATTEMPTS', 5)

        with storage_guard('open_session'):
            if SessionService.get_active_session_for(issuer) is not None:
                raise AlreadyActive()

            for attempt in range(1, max_attempts + 1):
                session = AttendanceSession(
                    course_code=course_code,
                    lecturer_name=lecturer_name,
                    issuer_id=issuer.id,
                    issuer_name=issuer.name,
                    department=issuer.department,
                    level=issuer.level,
                    session_code=generator.generate(),
                    is_active=True
                )
                db.session.add(session)
                try:
                    db.session.commit()
                except IntegrityError:
                    db.session.rollback()
                    # Either another tab won the race for this issuer, or the code is taken.
                    if SessionService._find_active(issuer.id) is not None:
                        raise AlreadyActive()
                    logger.warning("Session code collision for issuer %s (attempt %d/%d)",
                                   issuer.id, attempt, max_attempts)
                    continue

                logger.info("Session %s opened by %s for %s/%s (%s)",
                            session.id, issuer.matric_number, session.department,
                            session.level, session.course_code)
                return session

        logger.error("Could not allocate a session code for issuer %s after %d attempts",
                     issuer.id, max_attempts)
        raise CodeExhausted()

    @staticmethod
    def close_session(session_id: int, issuer: Profile) -> AttendanceSession:
        """Close an active session. Closing is terminal."""
        with storage_guard('close_session'):
            session = db.session.get(AttendanceSession, session_id)
            if session is None:
                raise NotFound()
            if not session.is_owned_by(issuer):
                raise NotOwner()
            if not session.is_active:
                raise AlreadyClosed()

            now = datetime.utcnow()
            result = db.session.execute(
                update(AttendanceSession)
                .where(AttendanceSession.id == session_id, AttendanceSession.is_active.is_(True))
                .values(is_active=False, closed_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )

            # A concurrent close got there first.
            if result.rowcount == 0:
                db.session.rollback()
                raise AlreadyClosed()

            db.session.refresh(session)
            queue_broadcast(object_session(session), BroadcastEvent.session_closed(session))
            db.session.commit()

        logger.info("Session %s closed by %s", session.id, issuer.matric_number)
        return session

    @staticmethod
    def get_session(session_id: int) -> AttendanceSession:
        with storage_guard('get_session'):
            session = db.session.get(AttendanceSession, session_id)
        if session is None:
            raise NotFound()
        return session

    @staticmethod
    def get_active_session_for(issuer: Profile) -> Optional[AttendanceSession]:
        """The issuer's open session, used to resume state after a reload."""
        with storage_guard('get_active_session_for'):
            return SessionService._find_active(issuer.id)

    @staticmethod
    def find_active_session_for_audience(department: str, level: str) -> Optional[AttendanceSession]:
        """Newest active session broadcast to a department and level."""
        with storage_guard('find_active_session_for_audience'):
            return AttendanceSession.query.filter_by(
                department=department,
                level=level,
                is_active=True
            ).order_by(AttendanceSession.created_at.desc(), AttendanceSession.id.desc()).first()

    @staticmethod
    def recent_sessions(issuer: Profile, limit: int = None) -> List[AttendanceSession]:
        """Closed sessions of the issuer, newest first."""
        if limit is None:
            limit = current_app.config.get('RECENT_SESSIONS_LIMIT', 5)

        with storage_guard('recent_sessions'):
            return AttendanceSession.query.filter_by(
                issuer_id=issuer.id,
                is_active=False
            ).order_by(AttendanceSession.created_at.desc(), AttendanceSession.id.desc()).limit(limit).all()

    @staticmethod
    def _find_active(issuer_id: int) -> Optional[AttendanceSession]:
        return AttendanceSession.query.filter_by(issuer_id=issuer_id, is_active=True).first()
