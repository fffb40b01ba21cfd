# File: backend/eduattend/api/auth.py
"""Authentication and profile API."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity, create_access_token
from eduattend import limiter
from eduattend.services.auth_service import AuthService
from eduattend.services.signature_service import SignatureService
from eduattend.utils.decorators import current_profile, profile_required
from eduattend.utils.errors import ValidationError
from eduattend.utils.helpers import success_response, error_response
from eduattend.utils.validators import Validator

auth_bp = Blueprint("auth", __name__)

def _profile_payload(profile):
    data = profile.to_dict()
    data['signature_url'] = SignatureService.public_url(profile.signature_ref)
    data['has_signature'] = profile.has_signature
    return data

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per hour")
def register():
    """Register a student or class representative."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    Validator.require(data, ["name", "matric_number", "password", "department", "level"])

    profile = AuthService.register(
        name=data["name"],
        matric_number=data["matric_number"],
        password=data["password"],
        department=data["department"],
        level=data["level"],
        is_hoc=bool(data.get("is_hoc", False)),
        hoc_code=data.get("hoc_code"),
        signature=data.get("signature")
    )

    return success_response(
        data=_profile_payload(profile),
        message="Registration successful",
        status_code=201
    )

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Login with matric number and password."""
    data = request.get_json(silent=True)
    if not data:
        return error_response("Request body must be JSON", 400)

    matric_number = (data.get("matric_number") or "").strip()
    password = data.get("password") or ""

    result = AuthService.login(matric_number, password)

    return success_response(
        data=result,
        message="Login successful"
    )

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
@profile_required
def get_current_user():
    """Get current user profile."""
    return success_response(data=_profile_payload(current_profile()))

@auth_bp.route("/me", methods=["PATCH"])
@jwt_required()
@profile_required
def update_current_user():
    """Edit name, department or level. The role cannot be changed."""
    data = request.get_json(silent=True) or {}

    if "is_hoc" in data:
        raise ValidationError("Role cannot be changed after registration")

    profile = AuthService.update_profile(
        current_profile(),
        name=data.get("name"),
        department=data.get("department"),
        level=data.get("level")
    )

    return success_response(data=_profile_payload(profile), message="Profile updated")

@auth_bp.route("/signature", methods=["PUT"])
@jwt_required()
@profile_required
def update_signature():
    """Replace the stored signature used for quick signing."""
    data = request.get_json(silent=True) or {}
    Validator.require(data, ["signature"])

    profile = AuthService.update_signature(current_profile(), data["signature"])

    return success_response(data=_profile_payload(profile), message="Signature updated")

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    """Refresh access token."""
    current_user_id = get_jwt_identity()

    if not AuthService.get_profile(current_user_id):
        return error_response("User not found", 404)

    return success_response(
        data={"access_token": create_access_token(identity=current_user_id)},
        message="Token refreshed"
    )
