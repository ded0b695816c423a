"""Public check-in API: validate session, verify answer, submit PIN."""
from flask import Blueprint, current_app, request

from checkin import limiter
from checkin.services.attendance_recorder import Provenance
from checkin.services.checkin_service import CheckInService, log_rejection
from checkin.utils.decorators import admin_required, handle_service_errors
from checkin.utils.exceptions import CheckInError
from checkin.utils.helpers import success_response
from checkin.utils.validators import get_json_body

checkin_bp = Blueprint('checkin', __name__)

def checkin_limit():
    return current_app.config['CHECKIN_RATE_LIMIT']

def pin_limit():
    return current_app.config['PIN_RATE_LIMIT']

@checkin_bp.route('/<int:session_id>/info', methods=['GET'])
@handle_service_errors("Failed to retrieve session information")
def get_session_info(session_id):
    """Session status for the check-in page; never rejects closed sessions."""
    return success_response(data={'session': CheckInService.get_session_status(session_id)})

@checkin_bp.route('/<int:session_id>/validate', methods=['GET'])
@limiter.limit(checkin_limit)
@handle_service_errors("Failed to validate session")
def validate_session(session_id):
    """Step 1: session exists, is active and is open for check-in."""
    try:
        result = CheckInService.validate_session(session_id)
    except CheckInError as error:
        log_rejection('validate', session_id, error)
        raise
    
    return success_response(data=result, message="Session is open for check-in")

@checkin_bp.route('/<int:session_id>/verify', methods=['POST'])
@limiter.limit(checkin_limit)
@handle_service_errors("Failed to verify answer")
def verify_answer(session_id):
    """Step 2: verify the secret answer."""
    data = get_json_body(request)
    
    try:
        result = CheckInService.verify_answer(session_id, data.get('answer'))
    except CheckInError as error:
        log_rejection('verify', session_id, error)
        raise
    
    return success_response(data=result, message="Answer verified successfully")

@checkin_bp.route('/<int:session_id>/submit', methods=['POST'])
@limiter.limit(pin_limit)
@handle_service_errors("Failed to record attendance")
def submit_attendance(session_id):
    """Step 3: submit PIN and record attendance."""
    data = get_json_body(request)
    provenance = Provenance(
        ip_address=request.remote_addr or 'unknown',
        user_agent=request.headers.get('User-Agent', 'unknown')
    )
    
    try:
        result = CheckInService.submit_check_in(session_id, data.get('pin'), provenance)
    except CheckInError as error:
        log_rejection('submit', session_id, error)
        raise
    
    return success_response(
        data=result,
        message=f"Welcome {result['member']['name']}! You have been successfully checked in.",
        status_code=201
    )

@checkin_bp.route('/<int:session_id>/stats', methods=['GET'])
@admin_required
@handle_service_errors("Failed to retrieve check-in statistics")
def get_check_in_stats(session_id):
    return success_response(data=CheckInService.get_check_in_stats(session_id))
