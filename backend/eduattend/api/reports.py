# File: backend/eduattend/api/reports.py
"""Session report API."""
from flask import Blueprint, request, send_file
from flask_jwt_extended import jwt_required
from eduattend.services.report_service import ReportService
from eduattend.utils.decorators import current_profile, hoc_required
from eduattend.utils.helpers import success_response

reports_bp = Blueprint('reports', __name__)

@reports_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Reports service is running')

@reports_bp.route('/<int:session_id>', methods=['GET'])
@jwt_required()
@hoc_required
def session_report(session_id):
    """Session details with every signed log."""
    session = ReportService.get_report_session(session_id, current_profile())
    return success_response(data=ReportService.build_report(session))

@reports_bp.route('/<int:session_id>/summary', methods=['GET'])
@jwt_required()
@hoc_required
def session_summary(session_id):
    """Shareable text summary."""
    session = ReportService.get_report_session(session_id, current_profile())
    return success_response(data={'text': ReportService.summary_text(session)})

@reports_bp.route('/<int:session_id>/export', methods=['GET'])
@jwt_required()
@hoc_required
def export_report(session_id):
    """Download the report as CSV (default) or Excel."""
    session = ReportService.get_report_session(session_id, current_profile())
    fmt = request.args.get('format', 'csv').lower()

    output, mimetype, filename = ReportService.export(session, fmt)

    return send_file(
        output,
        mimetype=mimetype,
        as_attachment=True,
        download_name=filename
    )
