"""Authentication service for profile management."""
import logging
from typing import Dict, Optional

from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token
from sqlalchemy.exc import IntegrityError

from eduattend import db
from eduattend.models.profile import Profile
from eduattend.services.signature_service import SignatureService
from eduattend.utils.errors import AuthError, DuplicateProfile, PermissionDenied, ValidationError
from eduattend.utils.helpers import storage_guard
from eduattend.utils.validators import Validator

logger = logging.getLogger(__name__)

class AuthService:
    @staticmethod
    def normalize_matric(matric_number: str) -> str:
        return (matric_number or '').strip().upper()

    @staticmethod
    def authenticate(matric_number: str, password: str) -> Profile:
        """Credential check; raises AuthError with one message for every failure."""
        if not matric_number or not password:
            raise AuthError("Matric number and password are required")

        with storage_guard('authenticate'):
            profile = Profile.query.filter_by(
                matric_number=AuthService.normalize_matric(matric_number)
            ).first()

        if not profile or not profile.check_password(password):
            raise AuthError()
        return profile

    @staticmethod
    def issue_tokens(profile: Profile) -> Dict:
        identity = str(profile.id)
        return {
            "access_token": create_access_token(identity=identity),
            "refresh_token": create_refresh_token(identity=identity),
            "user": profile.to_dict()
        }

    @staticmethod
    def login(matric_number: str, password: str) -> Dict:
        """Authenticate and return tokens."""
        profile = AuthService.authenticate(matric_number, password)
        logger.info("Login for %s", profile.matric_number)
        return AuthService.issue_tokens(profile)

    @staticmethod
    def register(
        name: str,
        matric_number: str,
        password: str,
        department: str,
        level: str,
        is_hoc: bool = False,
        hoc_code: Optional[str] = None,
        signature: Optional[str] = None
    ) -> Profile:
        """Register a new profile. The HOC role needs the configured access code."""
        matric_number = AuthService.normalize_matric(matric_number)
        name = (name or '').strip()

        if not Validator.validate_matric_number(matric_number):
            raise ValidationError("Invalid matric number")

        name_check = Validator.validate_name(name)
        if not name_check["is_valid"]:
            raise ValidationError(name_check["errors"][0])

        password_check = Validator.validate_password(password)
        if not password_check["is_valid"]:
            raise ValidationError(password_check["errors"][0])

        AuthService._validate_partition(department, level)

        if is_hoc and hoc_code != current_app.config.get('HOC_ACCESS_CODE'):
            raise PermissionDenied("Invalid class representative access code")

        with storage_guard('register'):
            if Profile.query.filter_by(matric_number=matric_number).first():
                raise DuplicateProfile()

        signature_ref = None
        if signature:
            signature_ref = SignatureService.store(SignatureService.decode(signature), matric_number)

        profile = Profile(
            matric_number=matric_number,
            name=name,
            department=department,
            level=level,
            is_hoc=bool(is_hoc),
            signature_ref=signature_ref
        )
        profile.set_password(password)

        with storage_guard('register'):
            db.session.add(profile)
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                raise DuplicateProfile()

        logger.info("Registered %s (%s)", profile.matric_number, 'HOC' if profile.is_hoc else 'student')
        return profile

    @staticmethod
    def update_profile(profile: Profile, name: str = None, department: str = None, level: str = None) -> Profile:
        """Edit display fields. Past attendance logs keep their copied values."""
        changes = {}

        if name is not None:
            name_check = Validator.validate_name(name)
            if not name_check["is_valid"]:
                raise ValidationError(name_check["errors"][0])
            changes['name'] = name.strip()

        if department is not None or level is not None:
            new_department = department if department is not None else profile.department
            new_level = level if level is not None else profile.level
            AuthService._validate_partition(new_department, new_level)
            changes['department'] = new_department
            changes['level'] = new_level

        if not changes:
            return profile

        with storage_guard('update_profile'):
            profile.update(**changes)
        return profile

    @staticmethod
    def update_signature(profile: Profile, signature: str) -> Profile:
        """Replace the stored signature used for quick signing."""
        signature_ref = SignatureService.store(SignatureService.decode(signature), profile.matric_number)
        with storage_guard('update_signature'):
            profile.update(signature_ref=signature_ref)
        return profile

    @staticmethod
    def get_profile(profile_id) -> Optional[Profile]:
        try:
            profile_id = int(profile_id)
        except (TypeError, ValueError):
            return None
        with storage_guard('get_profile'):
            return Profile.get_by_id(profile_id)

    @staticmethod
    def _validate_partition(department: str, level: str) -> None:
        departments = current_app.config.get('DEPARTMENTS')
        levels = current_app.config.get('LEVELS')

        if not department or (departments and not Validator.validate_choice(department, departments)):
            raise ValidationError("Invalid department")
        if not level or (levels and not Validator.validate_choice(level, levels)):
            raise ValidationError("Invalid level")
