"""Session model: a scheduled event with a bounded check-in window."""
from checkin import db
from checkin.models.base import BaseModel

class Session(BaseModel):
    """Event that members check into via its QR link."""
    
    __tablename__ = 'sessions'
    __table_args__ = (
        db.CheckConstraint('end_time > start_time', name='ck_sessions_time_range'),
    )
    
    theme = db.Column(db.String(200), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    
    # Secret question shown to attendees; only a hash of the normalized answer is kept
    secret_question = db.Column(db.String(500), nullable=False)
    secret_answer_hash = db.Column(db.String(255), nullable=False)
    
    # Check-in URL encoded in the QR code
    qr_code_data = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Relationships
    attendance = db.relationship('Attendance', back_populates='session', lazy='dynamic')
    
    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding the answer hash."""
        exclude = (exclude or []) + ['secret_answer_hash']
        return super().to_dict(exclude=exclude)
    
    def __repr__(self) -> str:
        return f'<Session {self.theme}>'
