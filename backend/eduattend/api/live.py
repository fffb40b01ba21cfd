# backend/eduattend/api/live.py
"""Socket.IO live updates for sessions and reports.

Clients connect to the ``/live`` namespace with ``auth={'token': <access JWT>}``
and then ask to follow sessions or watch a report. Each handler joins the room
first and reads the snapshot second, so nothing published in between is lost.
Socket.IO drops a client's rooms when it disconnects.
"""
import logging

from flask import current_app, request, session as socket_session
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_socketio import ConnectionRefusedError, emit
from jwt.exceptions import PyJWTError

from eduattend import broadcast, socketio
from eduattend.services.auth_service import AuthService
from eduattend.services.broadcast_service import (
    NAMESPACE, AudienceFilter, IssuerFilter, SessionFilter
)
from eduattend.services.report_service import ReportService
from eduattend.services.session_service import SessionService
from eduattend.utils.errors import AttendanceError, AuthError, PermissionDenied, ValidationError

logger = logging.getLogger(__name__)

def _profile_from_auth(auth):
    token = auth.get('token') if isinstance(auth, dict) else None
    if not token:
        return None
    try:
        claims = decode_token(token)
    except (JWTExtendedException, PyJWTError):
        return None
    if claims.get('type') != 'access':
        return None
    return AuthService.get_profile(claims.get(current_app.config.get('JWT_IDENTITY_CLAIM', 'sub')))

def _live_profile():
    profile = AuthService.get_profile(socket_session.get('profile_id'))
    if profile is None:
        raise AuthError("Connection is not authenticated")
    return profile

@socketio.on('connect', namespace=NAMESPACE)
def on_connect(auth=None):
    profile = _profile_from_auth(auth)
    if profile is None:
        raise ConnectionRefusedError('unauthorized')

    socket_session['profile_id'] = profile.id
    logger.info("Live client %s connected as %s", request.sid, profile.matric_number)

@socketio.on('disconnect', namespace=NAMESPACE)
def on_disconnect(*args):
    logger.info("Live client %s disconnected", request.sid)

@socketio.on('follow_sessions', namespace=NAMESPACE)
def on_follow_sessions(data=None):
    """Students follow their department and level; HOCs follow their own sessions."""
    profile = _live_profile()

    if profile.is_hoc:
        broadcast.subscribe(request.sid, IssuerFilter(profile.id))
        session = SessionService.get_active_session_for(profile)
        snapshot = {'session': session.to_dict() if session else None}
    else:
        broadcast.subscribe(request.sid, AudienceFilter(profile.department, profile.level))
        session = SessionService.find_active_session_for_audience(profile.department, profile.level)
        snapshot = {'session': session.to_public_dict() if session else None}

    emit('snapshot', snapshot)

@socketio.on('watch_report', namespace=NAMESPACE)
def on_watch_report(data=None):
    """Live feed of attendance logs for one of the caller's sessions."""
    profile = _live_profile()
    if not profile.is_hoc:
        raise PermissionDenied("Class representative access required")

    session_id = _session_id(data)
    session = ReportService.get_report_session(session_id, profile)

    broadcast.subscribe(request.sid, SessionFilter(session.id))
    emit('report_snapshot', ReportService.build_report(session))

@socketio.on('unwatch_report', namespace=NAMESPACE)
def on_unwatch_report(data=None):
    broadcast.leave(request.sid, SessionFilter(_session_id(data)))

@socketio.on_error(NAMESPACE)
def on_live_error(error):
    if isinstance(error, AttendanceError):
        emit('error', {
            'message': error.message,
            'status_code': error.status_code,
            'error_code': error.error_code
        })
        return

    logger.exception("Live handler failed: %s", error)
    emit('error', {'message': 'Internal server error', 'status_code': 500})

def _session_id(data) -> int:
    try:
        return int((data or {}).get('session_id'))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError("Invalid session id")
