# backend/eduattend/services/report_service.py
"""Session reports, department roster and exports."""
import io
from datetime import datetime
from typing import Dict, List, Tuple

import pandas as pd

from eduattend.models.attendance_log import AttendanceLog
from eduattend.models.attendance_session import AttendanceSession
from eduattend.models.profile import Profile
from eduattend.services.session_service import SessionService
from eduattend.services.signature_service import SignatureService
from eduattend.utils.errors import NotOwner, ValidationError
from eduattend.utils.helpers import matric_suffix, storage_guard

EXPORT_COLUMNS = ['S/N', 'Name', 'Matric Number', 'Department', 'Level', 'Time Signed']

class ReportService:
    """Read side of attendance sessions."""

    @staticmethod
    def get_report_session(session_id: int, viewer: Profile) -> AttendanceSession:
        session = SessionService.get_session(session_id)
        if not session.is_owned_by(viewer):
            raise NotOwner("You can only view reports for your own sessions")
        return session

    @staticmethod
    def session_logs(session: AttendanceSession) -> List[AttendanceLog]:
        """Logs of a session ordered by the numeric suffix of the matric number."""
        with storage_guard('session_logs'):
            logs = AttendanceLog.query.filter_by(session_id=session.id).all()
        return sorted(logs, key=lambda log: (matric_suffix(log.matric_number), log.matric_number))

    @staticmethod
    def build_report(session: AttendanceSession) -> Dict:
        logs = ReportService.session_logs(session)
        entries = []
        for log in logs:
            entry = log.to_dict()
            entry['signature_url'] = SignatureService.public_url(log.signature_ref)
            entries.append(entry)

        return {
            'session': session.to_dict(),
            'logs': entries,
            'total': len(entries)
        }

    @staticmethod
    def summary_text(session: AttendanceSession, total: int = None) -> str:
        """Plain-text summary for sharing."""
        if total is None:
            total = len(ReportService.session_logs(session))

        return (
            "EduAttend Registry Summary:\n\n"
            f"Course: {session.course_code}\n"
            f"Dept: {session.department}\n"
            f"Level: {session.level}\n"
            f"Lecturer: {session.lecturer_name}\n\n"
            f"TOTAL SIGNED: {total}\n"
            f"Status: {'Live' if session.is_active else 'Closed'}\n"
            f"Date: {datetime.utcnow().strftime('%Y-%m-%d %H:%M')} UTC"
        )

    @staticmethod
    def export(session: AttendanceSession, fmt: str = 'csv') -> Tuple[io.BytesIO, str, str]:
        """Export the roster of signatures. Returns (buffer, mimetype, filename)."""
        logs = ReportService.session_logs(session)
        rows = [
            {
                'S/N': index,
                'Name': log.student_name,
                'Matric Number': log.matric_number,
                'Department': log.department,
                'Level': log.level,
                'Time Signed': log.timestamp.strftime('%Y-%m-%d %H:%M:%S')
            }
            for index, log in enumerate(logs, start=1)
        ]
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
        stamp = session.created_at.strftime('%Y%m%d')
        filename = f"REPORT_{session.course_code}_{stamp}"

        output = io.BytesIO()
        if fmt == 'csv':
            df.to_csv(output, index=False, encoding='utf-8-sig')
            mimetype = 'text/csv'
            filename += '.csv'
        elif fmt == 'xlsx':
            with pd.ExcelWriter(output, engine='openpyxl') as writer:
                df.to_excel(writer, sheet_name='Attendance', index=False)
            mimetype = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
            filename += '.xlsx'
        else:
            raise ValidationError("Unsupported export format. Use csv or xlsx")

        output.seek(0)
        return output, mimetype, filename

class RosterService:
    """Department roster lookup."""

    @staticmethod
    def list_profiles(department: str) -> List[Profile]:
        """Students of a department (class representatives excluded)."""
        with storage_guard('list_profiles'):
            profiles = Profile.query.filter_by(department=department, is_hoc=False).all()
        return sorted(profiles, key=lambda p: (matric_suffix(p.matric_number), p.matric_number))
