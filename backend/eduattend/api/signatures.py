"""Signature image serving."""
from flask import Blueprint, abort, send_file
from eduattend.services.signature_service import SignatureService

signatures_bp = Blueprint('signatures', __name__)

@signatures_bp.route('/<ref>', methods=['GET'])
def get_signature(ref):
    """Serve a stored signature by its reference."""
    path = SignatureService.path_for(ref)
    if path is None:
        abort(404)
    return send_file(path, mimetype='image/png')
