"""Validation utilities for the application."""
import re
from typing import Dict, List, Any, Iterable

from eduattend.utils.errors import ValidationError

class Validator:
    """Validation helper class."""

    MATRIC_PATTERN = re.compile(r'^[A-Za-z0-9/\-]{4,30}$')
    COURSE_CODE_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9 /&.\-]{0,19}$')

    @staticmethod
    def validate_matric_number(matric_number: str) -> bool:
        """Validate matric number format (e.g. 2021/ENG/10293)."""
        if not matric_number:
            return False
        return bool(Validator.MATRIC_PATTERN.match(matric_number))

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []

        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_name(name: str) -> Dict[str, Any]:
        """Validate display name."""
        errors = []

        if not name or not name.strip():
            errors.append("Name is required")
        elif len(name.strip()) < 2:
            errors.append("Name must be at least 2 characters long")
        elif len(name.strip()) > 100:
            errors.append("Name is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_course_code(course_code: str) -> bool:
        """Validate course code format (e.g. CSC402, CHM 101/102)."""
        if not course_code:
            return False
        return bool(Validator.COURSE_CODE_PATTERN.match(course_code.strip()))

    @staticmethod
    def validate_choice(value: str, choices: Iterable[str]) -> bool:
        """Check value is one of the configured choices."""
        return value in set(choices)

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or not data[field]:
                errors.append(f"{field.replace('_', ' ').title()} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def require(data: Dict, required_fields: List[str]) -> None:
        """Raise ValidationError listing missing fields."""
        result = Validator.validate_required_fields(data or {}, required_fields)
        if not result["is_valid"]:
            raise ValidationError("; ".join(result["errors"]))
