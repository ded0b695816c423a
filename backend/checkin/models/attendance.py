"""Attendance model: one member checked into one session."""
from checkin import db
from checkin.models.base import BaseModel
from checkin.utils.helpers import utcnow

class Attendance(BaseModel):
    """Join fact created only by a successful check-in."""
    
    __tablename__ = 'attendance'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'member_id', name='uq_attendance_session_member'),
    )
    
    session_id = db.Column(db.Integer, db.ForeignKey('sessions.id'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False, index=True)
    checked_in_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    
    # Request provenance
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    
    # Relationships
    session = db.relationship('Session', back_populates='attendance')
    member = db.relationship('Member', back_populates='attendance')
    
    def __repr__(self):
        return f'<Attendance {self.session_id}-{self.member_id}>'
