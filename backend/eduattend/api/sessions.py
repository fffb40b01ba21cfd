# backend/eduattend/api/sessions.py
"""Live attendance session API."""
from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required
from eduattend import limiter
from eduattend.services.qr_service import QRService
from eduattend.services.session_service import SessionService
from eduattend.utils.decorators import current_profile, hoc_required, student_required
from eduattend.utils.errors import NotOwner
from eduattend.utils.helpers import success_response, error_response
from eduattend.utils.validators import Validator

sessions_bp = Blueprint('sessions', __name__)

def _portal_url() -> str:
    return current_app.config.get('PORTAL_URL') or request.host_url

def _owned_session(session_id: int):
    session = SessionService.get_session(session_id)
    if not session.is_owned_by(current_profile()):
        raise NotOwner()
    return session

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Session service is running')

@sessions_bp.route('/', methods=['POST'])
@jwt_required()
@hoc_required
@limiter.limit("30 per hour")
def open_session():
    """Start a live broadcast for the caller's department and level."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    Validator.require(data, ['course_code', 'lecturer_name'])

    session = SessionService.open_session(
        current_profile(),
        course_code=data['course_code'],
        lecturer_name=data['lecturer_name']
    )

    return success_response(
        data=session.to_dict(),
        message=f"Broadcast live: {session.session_code}",
        status_code=201
    )

@sessions_bp.route('/<int:session_id>/close', methods=['POST'])
@jwt_required()
@hoc_required
def close_session(session_id):
    """Close a session. No more entries are accepted afterwards."""
    session = SessionService.close_session(session_id, current_profile())

    return success_response(
        data=session.to_dict(),
        message="Session closed. No more entries allowed."
    )

@sessions_bp.route('/active', methods=['GET'])
@jwt_required()
@hoc_required
def active_session():
    """The caller's open session, if any (used after a reload)."""
    session = SessionService.get_active_session_for(current_profile())

    return success_response(data={'session': session.to_dict() if session else None})

@sessions_bp.route('/history', methods=['GET'])
@jwt_required()
@hoc_required
def session_history():
    """Recently closed sessions of the caller."""
    limit = request.args.get('limit', type=int)
    if limit is not None:
        limit = max(1, min(limit, 50))

    sessions = SessionService.recent_sessions(current_profile(), limit=limit)

    return success_response(data={'sessions': [s.to_dict() for s in sessions]})

@sessions_bp.route('/live', methods=['GET'])
@jwt_required()
@student_required
def live_session():
    """Active session for the caller's department and level (initial fetch)."""
    profile = current_profile()
    session = SessionService.find_active_session_for_audience(profile.department, profile.level)

    return success_response(data={'session': session.to_public_dict() if session else None})

@sessions_bp.route('/<int:session_id>/share', methods=['GET'])
@jwt_required()
@hoc_required
def share_session(session_id):
    """Alert text announcing the session code."""
    session = _owned_session(session_id)

    return success_response(data={
        'title': 'Attendance Alert',
        'text': QRService.share_message(session, _portal_url())
    })

@sessions_bp.route('/<int:session_id>/qr', methods=['GET'])
@jwt_required()
@hoc_required
def session_qr(session_id):
    """QR code of the join link for display in class."""
    session = _owned_session(session_id)
    link = QRService.join_link(session, _portal_url())

    return success_response(data={
        'link': link,
        'qr_image': QRService.generate_qr_image(link)
    })
