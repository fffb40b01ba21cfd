# File: backend/eduattend/api/attendance.py
"""Attendance API: code verification and signing."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from eduattend import limiter
from eduattend.services.signature_service import SignatureService
from eduattend.services.verification_service import VerificationService
from eduattend.utils.decorators import current_profile, student_required
from eduattend.utils.errors import SignatureMissing, ValidationError
from eduattend.utils.helpers import success_response, error_response
from eduattend.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)

def _session_id(data):
    session_id = data.get('session_id')
    if session_id in (None, ''):
        return None
    try:
        return int(session_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid session id")

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/sign', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("20 per minute")
def sign():
    """Verify a session code and sign with the stored signature."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    Validator.require(data, ['code'])
    session_id = _session_id(data)

    try:
        log = VerificationService.sign_attendance(
            current_profile(),
            data['code'],
            session_id=session_id
        )
    except SignatureMissing as e:
        # Client continues with the signature capture flow.
        return error_response(
            e.message, e.status_code,
            error_code=e.error_code,
            data={'session_id': e.session_id, 'next': 'sign-with-signature'}
        )

    return success_response(
        data=log.to_dict(),
        message="Attendance marked successfully",
        status_code=201
    )

@attendance_bp.route('/sign-with-signature', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit("20 per minute")
def sign_with_signature():
    """Verify a session code and sign with a freshly drawn signature."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    Validator.require(data, ['code', 'signature'])

    log = VerificationService.sign_with_captured_signature(
        current_profile(),
        data['code'],
        SignatureService.decode(data['signature']),
        session_id=_session_id(data),
        remember=bool(data.get('remember', False))
    )

    return success_response(
        data=log.to_dict(),
        message="Attendance marked successfully",
        status_code=201
    )
