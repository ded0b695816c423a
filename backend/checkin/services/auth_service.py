"""Authentication service for admin accounts."""
from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token

from checkin import db
from checkin.models.admin import Admin
from checkin.utils.exceptions import AuthenticationFailed, Conflict, ValidationError
from checkin.utils.helpers import utcnow
from checkin.utils.validators import Validator

MIN_PASSWORD_LENGTH = 6

class AuthService:
    @staticmethod
    def validate_password(password: str) -> None:
        """Validate password strength."""
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    
    @staticmethod
    def _tokens(admin: Admin) -> dict:
        identity = str(admin.id)
        return {
            "access_token": create_access_token(identity=identity),
            "refresh_token": create_refresh_token(identity=identity)
        }
    
    @classmethod
    def login(cls, email: str, password: str) -> dict:
        """Authenticate admin and return tokens."""
        if not email or not password:
            raise ValidationError("Email and password are required")
        
        if not Validator.validate_email(email.strip()):
            raise ValidationError("Invalid email format")
        
        admin = Admin.query.filter_by(email=email.lower().strip()).first()
        
        if not admin or not admin.check_password(password):
            current_app.logger.warning('Failed admin login for %s', email.lower().strip())
            raise AuthenticationFailed()
        
        if not admin.is_active:
            raise AuthenticationFailed("Your account has been disabled")
        
        admin.last_login = utcnow()
        db.session.commit()
        
        result = cls._tokens(admin)
        result["admin"] = admin.to_dict()
        return result
    
    @staticmethod
    def get_active_admin(identity) -> Admin:
        """Load the admin a token was issued to; disabled accounts are refused."""
        try:
            admin = db.session.get(Admin, int(identity))
        except (TypeError, ValueError):
            admin = None

        if not admin or not admin.is_active:
            raise AuthenticationFailed("Admin access required")
        return admin

    @classmethod
    def refresh(cls, admin: Admin) -> dict:
        """Generate new access token."""
        return {
            "access_token": create_access_token(identity=str(admin.id)),
            "admin": admin.to_dict()
        }
    
    @classmethod
    def change_password(cls, admin: Admin, current_password: str, new_password: str) -> None:
        if not admin.check_password(current_password or ''):
            raise AuthenticationFailed("Current password is incorrect")
        cls.validate_password(new_password)
        admin.set_password(new_password)
        db.session.commit()
        current_app.logger.info('Admin %s changed password', admin.id)
    
    @classmethod
    def create_admin(cls, email: str, name: str, password: str) -> Admin:
        """Register new admin."""
        if not Validator.validate_email((email or '').strip()):
            raise ValidationError("Invalid email format")
        if not name or len(name.strip()) < 2:
            raise ValidationError("Name must be at least 2 characters long")
        cls.validate_password(password)
        
        email = email.lower().strip()
        if Admin.query.filter_by(email=email).first():
            raise Conflict("Email already exists")
        
        admin = Admin(email=email, name=name.strip())
        admin.set_password(password)
        return admin.save()
