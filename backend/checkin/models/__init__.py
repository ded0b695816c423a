"""Models package with all models."""
from .base import BaseModel
from .admin import Admin
from .member import Member
from .session import Session
from .attendance import Attendance

__all__ = [
    'BaseModel', 'Admin', 'Member', 'Session', 'Attendance'
]
