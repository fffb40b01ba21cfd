"""Models package with all models."""
from . import events  # noqa: F401
from .base import BaseModel
from .profile import Profile
from .attendance_session import AttendanceSession
from .attendance_log import AttendanceLog

__all__ = [
    'BaseModel', 'Profile',
    'AttendanceSession', 'AttendanceLog'
]
