# backend/eduattend/services/signature_service.py
"""Signature image storage.

Signatures are opaque PNG blobs; the rest of the system only ever sees the
reference returned by ``store``.
"""
import base64
import binascii
import os
import secrets
import time
from typing import Optional

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from eduattend.utils.errors import ValidationError

PNG_HEADER = b'\x89PNG\r\n\x1a\n'

class SignatureService:
    """Filesystem-backed signature store."""

    @staticmethod
    def decode(data: str) -> bytes:
        """Decode a base64 string or a ``data:image/png;base64,`` URL."""
        if not data or not isinstance(data, str):
            raise ValidationError("Signature image is required")

        if data.startswith('data:'):
            header, _, data = data.partition(',')
            if not header.endswith(';base64'):
                raise ValidationError("Signature must be base64 encoded")

        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Signature is not valid base64")

    @staticmethod
    def store(blob: bytes, owner: str) -> str:
        """Persist a PNG signature and return its reference."""
        if not blob:
            raise ValidationError("Signature image is empty")
        if not blob.startswith(PNG_HEADER):
            raise ValidationError("Signature must be a PNG image")

        max_bytes = current_app.config.get('MAX_SIGNATURE_BYTES', 512 * 1024)
        if len(blob) > max_bytes:
            raise ValidationError("Signature image is too large")

        folder = SignatureService._folder()
        os.makedirs(folder, exist_ok=True)

        ref = secure_filename(f"{owner}_sig_{int(time.time() * 1000)}_{secrets.token_hex(4)}.png")
        with open(os.path.join(folder, ref), 'wb') as handle:
            handle.write(blob)

        current_app.logger.info("Stored signature %s", ref)
        return ref

    @staticmethod
    def path_for(ref: str) -> Optional[str]:
        """Absolute path of a stored signature, or None if unknown."""
        if not ref or secure_filename(ref) != ref:
            return None
        path = os.path.join(SignatureService._folder(), ref)
        return path if os.path.isfile(path) else None

    @staticmethod
    def discard(ref: str) -> None:
        """Remove a stored signature that ended up backing nothing."""
        path = SignatureService.path_for(ref)
        if path is None:
            return
        os.remove(path)
        current_app.logger.info("Discarded signature %s", ref)

    @staticmethod
    def public_url(ref: Optional[str]) -> Optional[str]:
        if not ref:
            return None
        return url_for('signatures.get_signature', ref=ref, _external=True)

    @staticmethod
    def _folder() -> str:
        folder = current_app.config.get('SIGNATURE_FOLDER', 'uploads/signatures')
        if not os.path.isabs(folder):
            folder = os.path.join(current_app.instance_path, folder)
        return folder
