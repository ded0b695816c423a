"""Session Management API - Admin Only."""
from flask import Blueprint, Response, current_app, request

from checkin.models.attendance import Attendance
from checkin.services.qr_service import QRService
from checkin.services.session_service import SessionService
from checkin.utils.decorators import admin_required, handle_service_errors
from checkin.utils.exceptions import SessionInactive, ValidationError
from checkin.utils.helpers import paginate_args, pagination_dict, success_response, utcnow
from checkin.utils.validators import get_json_body, require_datetime

sessions_bp = Blueprint('sessions', __name__)

QR_FORMATS = ('png', 'svg')

@sessions_bp.route('', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve sessions")
def get_sessions():
    """List sessions with status filter and pagination."""
    page, per_page = paginate_args(request.args, current_app.config)
    from_date = request.args.get('from_date')
    to_date = request.args.get('to_date')
    now = utcnow()
    
    pagination = SessionService.list_sessions(
        status=request.args.get('status'),
        from_date=require_datetime(from_date, 'from_date') if from_date else None,
        to_date=require_datetime(to_date, 'to_date') if to_date else None,
        page=page,
        per_page=per_page,
        sort_order=request.args.get('sort_order', 'desc'),
        now=now
    )
    counts = SessionService.attendance_counts([s.id for s in pagination.items])
    
    return success_response(
        data={
            'sessions': [
                SessionService.serialize(s, now, counts.get(s.id, 0)) for s in pagination.items
            ],
            'pagination': pagination_dict(pagination)
        }
    )

@sessions_bp.route('/stats', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve session statistics")
def get_session_stats():
    return success_response(data=SessionService.get_stats())

@sessions_bp.route('/<int:session_id>', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve session")
def get_session(session_id):
    """Get a session with its attendance list."""
    session = SessionService.get_session(session_id)
    data = SessionService.serialize(session)
    data['attendance'] = [
        {
            'id': record.id,
            'checked_in_at': record.checked_in_at.isoformat(),
            'member': {
                'id': record.member.id,
                'name': record.member.name,
                'email': record.member.email
            }
        }
        for record in session.attendance.order_by(Attendance.checked_in_at.desc()).all()
    ]
    return success_response(data=data)

@sessions_bp.route('', methods=['POST'])
@admin_required
@handle_service_errors("Failed to create session")
def create_session():
    """Create a session and return its QR code."""
    session = SessionService.create_session(get_json_body(request))
    data = SessionService.serialize(session, attendance_count=0)
    qr = QRService.generate_session_qr(session.id)
    data['qr_code'] = qr['data_url']
    data['qr_code_svg'] = qr['svg']
    
    return success_response(data=data, message="Session created successfully", status_code=201)

@sessions_bp.route('/<int:session_id>', methods=['PUT', 'PATCH'])
@admin_required
@handle_service_errors("Failed to update session")
def update_session(session_id):
    session = SessionService.update_session(session_id, get_json_body(request))
    data = SessionService.serialize(session)
    
    if session.is_active:
        qr = QRService.generate_session_qr(session.id)
        data['qr_code'] = qr['data_url']
        data['qr_code_svg'] = qr['svg']
    
    return success_response(data=data, message="Session updated successfully")

@sessions_bp.route('/<int:session_id>', methods=['DELETE'])
@admin_required
@handle_service_errors("Failed to delete session")
def delete_session(session_id):
    """Delete a session, or deactivate it when attendance exists."""
    result = SessionService.delete_session(session_id)
    message = (
        "Session deleted successfully" if result['deleted']
        else "Session deactivated (attendance records preserved)"
    )
    return success_response(data=result, message=message)

@sessions_bp.route('/<int:session_id>/qr', methods=['GET'])
@admin_required
@handle_service_errors("Failed to download QR code")
def download_qr(session_id):
    """Download the session QR code as PNG or SVG."""
    file_format = request.args.get('format', 'png').lower()
    if file_format not in QR_FORMATS:
        raise ValidationError(f"Format must be one of: {', '.join(QR_FORMATS)}")
    
    session = SessionService.get_session(session_id)
    if not session.is_active:
        raise SessionInactive("Cannot download QR code for inactive session")
    
    content, mimetype, filename = QRService.generate_qr_file(session.id, file_format)
    return Response(
        content,
        mimetype=mimetype,
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )
