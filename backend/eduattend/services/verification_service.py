# backend/eduattend/services/verification_service.py
"""Verification engine: code check and attendance logging."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from eduattend import db
from eduattend.models.attendance_log import AttendanceLog
from eduattend.models.attendance_session import AttendanceSession
from eduattend.models.profile import Profile
from eduattend.services.code_service import CodeGenerator
from eduattend.services.signature_service import SignatureService
from eduattend.utils.errors import (
    AlreadySigned, AttendanceError, InvalidCode, PermissionDenied, SessionClosed,
    SignatureMissing
)
from eduattend.utils.helpers import storage_guard

logger = logging.getLogger(__name__)

class VerificationService:
    """Turns "enter code" into exactly one attendance log per student per session."""

    @staticmethod
    def resolve_session(student: Profile, session_code: str, session_id: Optional[int] = None) -> AttendanceSession:
        """Find the session the submitted code refers to.

        With ``session_id`` (the session the student was notified about) the
        code must match that session. Without it the code is looked up among the
        active sessions of the student's audience. Any miss is an InvalidCode
        with the same message, whatever the cause.
        """
        code = CodeGenerator.normalize(session_code)
        if not code:
            raise InvalidCode()

        if session_id is not None:
            session = db.session.get(AttendanceSession, session_id)
            if session is None or not session.matches_audience(student) or session.session_code != code:
                raise InvalidCode()
            return session

        session = AttendanceSession.query.filter_by(
            session_code=code,
            department=student.department,
            level=student.level,
            is_active=True
        ).first()
        if session is None:
            raise InvalidCode()
        return session

    @staticmethod
    def sign_attendance(
        student: Profile,
        session_code: str,
        session_id: Optional[int] = None,
        signature_ref: Optional[str] = None
    ) -> AttendanceLog:
        """Verify the code and write the student's attendance log.

        Repeated submissions are safe: the (session, student) unique constraint
        turns every submission after the first into AlreadySigned.
        """
        if student.is_hoc:
            raise PermissionDenied("Class representatives cannot sign attendance")

        with storage_guard('sign_attendance'):
            session = VerificationService.resolve_session(student, session_code, session_id)

            # Activity may have flipped since the student was notified.
            if not session.is_active:
                raise SessionClosed()

            signature = signature_ref or student.signature_ref
            if not signature:
                raise SignatureMissing(session_id=session.id)

            log = AttendanceLog(
                session_id=session.id,
                student_id=student.id,
                student_name=student.name,
                matric_number=student.matric_number,
                department=student.department,
                level=student.level,
                signature_ref=signature,
                timestamp=datetime.utcnow()
            )
            db.session.add(log)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                logger.info("Duplicate attendance submission by %s for session %s",
                            student.matric_number, session.id)
                raise AlreadySigned()

        logger.info("Attendance logged for %s in session %s", student.matric_number, log.session_id)
        return log

    @staticmethod
    def sign_with_captured_signature(
        student: Profile,
        session_code: str,
        signature_blob: bytes,
        session_id: Optional[int] = None,
        remember: bool = False
    ) -> AttendanceLog:
        """Signature-capture flow for students without a stored signature.

        The code and any earlier log are checked before the image is stored,
        and the image is removed again if signing fails, so a rejected attempt
        leaves nothing behind. The profile only remembers a signature that is
        already backing a committed log.
        """
        with storage_guard('sign_with_captured_signature'):
            session = VerificationService.resolve_session(student, session_code, session_id)
            if not session.is_active:
                raise SessionClosed()
            if AttendanceLog.query.filter_by(session_id=session.id, student_id=student.id).first():
                raise AlreadySigned()

        signature_ref = SignatureService.store(signature_blob, student.matric_number)

        try:
            log = VerificationService.sign_attendance(
                student,
                session_code,
                session_id=session.id,
                signature_ref=signature_ref
            )
        except AttendanceError:
            SignatureService.discard(signature_ref)
            raise

        if remember and not student.signature_ref:
            with storage_guard('remember_signature'):
                student.update(signature_ref=signature_ref)

        return log
