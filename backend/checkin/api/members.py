"""Member Management API - Admin Only."""
from flask import Blueprint, current_app, request

from checkin.services.member_service import MemberService
from checkin.utils.decorators import admin_required, handle_service_errors
from checkin.utils.helpers import paginate_args, pagination_dict, success_response
from checkin.utils.validators import get_json_body

members_bp = Blueprint('members', __name__)

def _parse_active_filter(value):
    if value is None:
        return None
    return value.lower() in ('1', 'true', 'yes')

@members_bp.route('', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve members")
def get_members():
    """List/search members with pagination."""
    page, per_page = paginate_args(request.args, current_app.config)
    
    pagination = MemberService.search_members(
        query=request.args.get('query'),
        is_active=_parse_active_filter(request.args.get('is_active')),
        page=page,
        per_page=per_page,
        sort_by=request.args.get('sort_by', 'name'),
        sort_order=request.args.get('sort_order', 'asc')
    )
    
    return success_response(
        data={
            'members': [member.to_dict() for member in pagination.items],
            'pagination': pagination_dict(pagination)
        }
    )

@members_bp.route('/<int:member_id>', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve member")
def get_member(member_id):
    """Get single member with recent attendance."""
    member = MemberService.get_member(member_id)
    data = member.to_dict()
    data['attendance'] = MemberService.recent_attendance(member)
    data['attendance_count'] = member.attendance.count()
    return success_response(data=data)

@members_bp.route('', methods=['POST'])
@admin_required
@handle_service_errors("Failed to create member")
def create_member():
    """Create single member; a unique PIN is issued."""
    member = MemberService.create_member(get_json_body(request))
    return success_response(
        data=member.to_dict(),
        message="Member created successfully",
        status_code=201
    )

@members_bp.route('/<int:member_id>', methods=['PUT', 'PATCH'])
@admin_required
@handle_service_errors("Failed to update member")
def update_member(member_id):
    member = MemberService.update_member(member_id, get_json_body(request))
    return success_response(data=member.to_dict(), message="Member updated successfully")

@members_bp.route('/<int:member_id>', methods=['DELETE'])
@admin_required
@handle_service_errors("Failed to deactivate member")
def deactivate_member(member_id):
    """Deactivate member (soft delete)."""
    member = MemberService.deactivate_member(member_id)
    return success_response(data=member.to_dict(), message="Member deactivated successfully")
