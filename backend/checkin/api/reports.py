"""Attendance Reports API - Admin Only."""
from flask import Blueprint, current_app, request

from checkin.services.report_service import (
    DEFAULT_ANALYTICS_DAYS, DEFAULT_TRENDS_DAYS, ReportService
)
from checkin.utils.decorators import admin_required, handle_service_errors
from checkin.utils.helpers import success_response
from checkin.utils.validators import require_datetime

reports_bp = Blueprint('reports', __name__)

def _date_arg(name):
    value = request.args.get(name)
    return require_datetime(value, name) if value else None

@reports_bp.route('/sessions/<int:session_id>', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve session report")
def session_report(session_id):
    """Attendance roster and rate for one session."""
    return success_response(data=ReportService.session_report(session_id))

@reports_bp.route('/members/<int:member_id>', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve member attendance")
def member_attendance(member_id):
    """Attendance history for one member."""
    limit = request.args.get('limit', 50, type=int) or 50
    limit = min(max(limit, 1), current_app.config.get('MAX_PAGE_SIZE', 100))
    
    data = ReportService.member_attendance(
        member_id,
        from_date=_date_arg('from_date'),
        to_date=_date_arg('to_date'),
        limit=limit
    )
    return success_response(data=data)

@reports_bp.route('/analytics', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve analytics data")
def analytics():
    data = ReportService.analytics(
        days=request.args.get('period', DEFAULT_ANALYTICS_DAYS, type=int),
        from_date=_date_arg('from_date'),
        to_date=_date_arg('to_date')
    )
    return success_response(data=data)

@reports_bp.route('/trends', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve attendance trends")
def attendance_trends():
    """Weekly and day-of-week attendance trends."""
    data = ReportService.attendance_trends(
        days=request.args.get('period', DEFAULT_TRENDS_DAYS, type=int)
    )
    return success_response(data=data)
