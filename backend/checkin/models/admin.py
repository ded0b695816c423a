"""Admin model for dashboard authentication."""
from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash
from checkin import db
from checkin.models.base import BaseModel

class Admin(BaseModel):
    """Administrator allowed to manage members and sessions."""
    
    __tablename__ = 'admins'
    
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)
    
    def set_password(self, password: str) -> None:
        """Set admin password with hashing."""
        self.password_hash = generate_password_hash(
            password, method=current_app.config['SECRET_HASH_METHOD']
        )
    
    def check_password(self, password: str) -> bool:
        """Check if provided password matches admin's password."""
        return check_password_hash(self.password_hash, password)
    
    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        exclude = (exclude or []) + ['password_hash']
        return super().to_dict(exclude=exclude)
    
    def __repr__(self) -> str:
        return f'<Admin {self.email}>'
