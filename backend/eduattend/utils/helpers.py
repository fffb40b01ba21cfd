"""Helper functions for the application."""
import logging
import re
from contextlib import contextmanager
from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_limiter.util import get_remote_address
from jwt.exceptions import PyJWTError
from typing import Any, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from eduattend.utils.errors import StorageUnavailable

logger = logging.getLogger(__name__)

MATRIC_SUFFIX_PATTERN = re.compile(r'\d+$')

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, error_code: Optional[str] = None, data: Any = None):
    """Return consistent error response."""
    response = {
        'error': True,
        'message': message,
        'status_code': status_code
    }

    if error_code:
        response['error_code'] = error_code
    if data is not None:
        response['data'] = data

    return jsonify(response), status_code

def matric_suffix(matric_number: Optional[str]) -> int:
    """Numeric value of the last three digits of a matric number, 0 if none."""
    match = MATRIC_SUFFIX_PATTERN.search(matric_number or '')
    if not match:
        return 0
    return int(match.group(0)[-3:])

@contextmanager
def storage_guard(operation: str):
    """Turn unexpected database failures into a retryable StorageUnavailable."""
    from eduattend import db

    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Storage failure during %s", operation)
        raise StorageUnavailable() from e

def rate_limit_key() -> str:
    """Rate limit per signed-in profile; anonymous requests fall back to the client address.

    Students behind one classroom NAT keep separate budgets.
    """
    try:
        verify_jwt_in_request(optional=True)
        identity = get_jwt_identity()
    except (JWTExtendedException, PyJWTError):
        identity = None

    if identity is not None:
        return f"profile:{identity}"
    return get_remote_address()
