# backend/eduattend/services/qr_service.py
"""QR code and share message generation for live sessions."""
import qrcode
import io
import base64
from urllib.parse import urlencode

from eduattend.models.attendance_session import AttendanceSession

class QRService:
    """Service for QR code operations."""

    @staticmethod
    def join_link(session: AttendanceSession, base_url: str) -> str:
        """Link students open to reach the code entry screen."""
        query = urlencode({'session_id': session.id})
        return f"{base_url.rstrip('/')}/?{query}"

    @staticmethod
    def generate_qr_image(data: str) -> str:
        """Render data as a base64 PNG data URL."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

    @staticmethod
    def share_message(session: AttendanceSession, base_url: str) -> str:
        """Broadcast alert text the issuer can paste into a class group chat."""
        return (
            f"Attention! {session.issuer_name} has started an attendance session for "
            f"{session.course_code}. \n\n"
            f"Log in to the portal and enter unique code: {session.session_code} \n\n"
            f"Link: {QRService.join_link(session, base_url)}"
        )
