"""Domain errors returned to the caller for direct display."""


class AttendanceError(Exception):
    """Base class for errors raised by the attendance services."""

    status_code = 400
    error_code = 'attendance_error'
    default_message = 'Attendance request failed'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AttendanceError):
    status_code = 400
    error_code = 'validation_error'
    default_message = 'Invalid request data'


class AuthError(AttendanceError):
    status_code = 401
    error_code = 'auth_failed'
    default_message = 'Invalid matric number or password'


class PermissionDenied(AttendanceError):
    status_code = 403
    error_code = 'permission_denied'
    default_message = 'You are not allowed to perform this action'


class DuplicateProfile(AttendanceError):
    status_code = 409
    error_code = 'duplicate_profile'
    default_message = 'Matric number already exists'


# Session controller

class AlreadyActive(AttendanceError):
    status_code = 409
    error_code = 'already_active'
    default_message = 'You already have an active session. Close it before starting a new one.'


class NotFound(AttendanceError):
    status_code = 404
    error_code = 'not_found'
    default_message = 'Session not found'


class NotOwner(AttendanceError):
    status_code = 403
    error_code = 'not_owner'
    default_message = 'You can only manage your own sessions'


class AlreadyClosed(AttendanceError):
    status_code = 409
    error_code = 'already_closed'
    default_message = 'Session is already closed'


class CodeExhausted(AttendanceError):
    status_code = 503
    error_code = 'code_exhausted'
    default_message = 'Could not allocate a unique session code. Please try again.'


# Verification engine

class InvalidCode(AttendanceError):
    status_code = 400
    error_code = 'invalid_code'
    default_message = 'Invalid or expired session code.'


class SessionClosed(AttendanceError):
    status_code = 409
    error_code = 'session_closed'
    default_message = 'This session has been closed. No more entries allowed.'


class AlreadySigned(AttendanceError):
    status_code = 409
    error_code = 'already_signed'
    default_message = 'Attendance already recorded for this session'


class SignatureMissing(AttendanceError):
    status_code = 428
    error_code = 'signature_missing'
    default_message = 'A signature is required before attendance can be recorded'

    def __init__(self, session_id: int = None, message: str = None):
        super().__init__(message)
        self.session_id = session_id


class StorageUnavailable(AttendanceError):
    """Transient storage failure; the whole operation may be retried."""

    status_code = 503
    error_code = 'storage_unavailable'
    default_message = 'Storage is temporarily unavailable. Please try again.'
