# backend/eduattend/utils/decorators.py
"""Custom decorators for authorization.

Each decorator resolves the JWT identity to a Profile and stores it on
``flask.g``; views pass that profile explicitly into the services.
"""
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity
from eduattend.services.auth_service import AuthService
from eduattend.utils.helpers import error_response

def current_profile():
    """Profile of the authenticated caller for this request."""
    return g.get('current_profile')

def _load_profile():
    profile = AuthService.get_profile(get_jwt_identity())
    g.current_profile = profile
    return profile

def profile_required(f):
    """Decorator to require an existing profile."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _load_profile():
            return error_response("User not found", 404)

        return f(*args, **kwargs)
    return decorated_function

def hoc_required(f):
    """Decorator to require the class representative role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        profile = _load_profile()

        if not profile:
            return error_response("User not found", 404)

        if not profile.is_hoc:
            return error_response("Class representative access required", 403, error_code='permission_denied')

        return f(*args, **kwargs)
    return decorated_function

def student_required(f):
    """Decorator to require the student role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        profile = _load_profile()

        if not profile:
            return error_response("User not found", 404)

        if profile.is_hoc:
            return error_response("Student access required", 403, error_code='permission_denied')

        return f(*args, **kwargs)
    return decorated_function
