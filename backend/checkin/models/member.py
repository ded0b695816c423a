"""Member model: the people who check in."""
from checkin import db
from checkin.models.base import BaseModel

class Member(BaseModel):
    """Directory entry identified at check-in by a permanent numeric PIN."""
    
    __tablename__ = 'members'
    
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(30), nullable=True)
    
    # Plaintext PIN is the lookup key; pin_hash is re-verified on every check-in
    pin = db.Column(db.String(10), unique=True, nullable=False, index=True)
    pin_hash = db.Column(db.String(255), nullable=False)
    
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Relationships
    attendance = db.relationship('Attendance', back_populates='member', lazy='dynamic')
    
    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding the PIN hash."""
        exclude = (exclude or []) + ['pin_hash']
        return super().to_dict(exclude=exclude)
    
    def __repr__(self) -> str:
        return f'<Member {self.email}>'
