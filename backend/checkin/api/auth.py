"""Admin Authentication API."""
from flask import Blueprint, g, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from checkin import limiter
from checkin.services.auth_service import AuthService
from checkin.utils.decorators import admin_required, handle_service_errors
from checkin.utils.helpers import success_response
from checkin.utils.validators import get_json_body

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
@handle_service_errors("Login failed")
def login():
    """Admin login with email and password."""
    data = get_json_body(request)
    
    result = AuthService.login(data.get("email", ""), data.get("password", ""))
    
    return success_response(data=result, message="Login successful")

@auth_bp.route("/me", methods=["GET"])
@admin_required
def me():
    """Current admin profile."""
    return success_response(data=g.current_admin.to_dict())

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
@handle_service_errors("Token refresh failed")
def refresh():
    """Exchange a refresh token for a fresh access token."""
    admin = AuthService.get_active_admin(get_jwt_identity())
    return success_response(
        data=AuthService.refresh(admin),
        message="Token refreshed successfully"
    )

@auth_bp.route("/change-password", methods=["POST"])
@admin_required
@handle_service_errors("Password change failed")
def change_password():
    data = get_json_body(request)
    
    AuthService.change_password(
        g.current_admin,
        data.get("current_password"),
        data.get("new_password")
    )
    
    return success_response(message="Password changed successfully")
