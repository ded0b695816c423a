"""Custom decorators for authorization and error handling."""
from functools import wraps

from flask import current_app, g
from flask_jwt_extended import get_jwt_identity, jwt_required
from werkzeug.exceptions import HTTPException

from checkin import db
from checkin.models.admin import Admin
from checkin.utils.exceptions import CheckInError
from checkin.utils.helpers import error_response

def admin_required(f):
    """Decorator to require an authenticated, active admin."""
    @wraps(f)
    @jwt_required()
    def decorated_function(*args, **kwargs):
        current_admin_id = get_jwt_identity()
        admin = db.session.get(Admin, int(current_admin_id))
        
        if not admin or not admin.is_active:
            return error_response("Admin access required", 401, kind='unauthorized')
        
        g.current_admin = admin
        return f(*args, **kwargs)
    return decorated_function

def handle_service_errors(failure_message: str):
    """Turn unexpected faults into a generic 500 without leaking storage details.

    Business-rule rejections (``CheckInError``) and HTTP exceptions pass
    through to the registered error handlers untouched.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except (CheckInError, HTTPException):
                raise
            except Exception:
                db.session.rollback()
                current_app.logger.exception(failure_message)
                return error_response(failure_message, 500, kind='internal_error')
        return decorated_function
    return decorator
