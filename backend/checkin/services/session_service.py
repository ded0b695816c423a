"""Session directory service."""
from datetime import datetime, timedelta
from typing import Dict, Optional

from flask import current_app
from sqlalchemy import func

from checkin import db
from checkin.models.attendance import Attendance
from checkin.models.session import Session
from checkin.services.answer_verifier import hash_answer
from checkin.services.qr_service import QRService
from checkin.services.session_status import configured_buffer, evaluate_session
from checkin.utils.exceptions import NotFound, ValidationError
from checkin.utils.helpers import isoformat, utcnow
from checkin.utils.validators import Validator, optional_bool, require_datetime

STATUS_FILTERS = ('active', 'upcoming', 'completed', 'inactive')
STATS_PERIOD_DAYS = 30

class SessionService:
    """Service for managing sessions."""
    
    @staticmethod
    def get_session(session_id: int) -> Session:
        session = db.session.get(Session, session_id)
        if session is None:
            raise NotFound("Session with the specified ID does not exist")
        return session
    
    @staticmethod
    def _text_errors(data: Dict, partial: bool) -> list:
        errors = []
        rules = (
            ('theme', 'Theme', 3, 200),
            ('secret_question', 'Secret question', 5, 500),
            ('secret_answer', 'Secret answer', 1, 100),
        )
        for key, label, low, high in rules:
            if not partial or key in data:
                errors += Validator.validate_text(data.get(key), label, low, high)
        return errors
    
    @staticmethod
    def serialize(session: Session, now: Optional[datetime] = None, attendance_count: int = None) -> Dict:
        now = now or utcnow()
        data = session.to_dict()
        data['status'] = evaluate_session(session, now).status.value
        data['attendance_count'] = (
            attendance_count if attendance_count is not None else session.attendance.count()
        )
        return data
    
    @classmethod
    def create_session(cls, data: Dict, now: Optional[datetime] = None) -> Session:
        """Create an active session; the answer is normalized then hashed."""
        now = now or utcnow()
        errors = cls._text_errors(data, partial=False)
        if errors:
            raise ValidationError("Invalid input data", details=errors)
        
        start = require_datetime(data.get('start_time'), 'start_time')
        end = require_datetime(data.get('end_time'), 'end_time')
        if start >= end:
            raise ValidationError("End time must be after start time")
        if end <= now:
            raise ValidationError("End time must be in the future")
        
        session = Session(
            theme=data['theme'].strip(),
            start_time=start,
            end_time=end,
            secret_question=data['secret_question'].strip(),
            secret_answer_hash=hash_answer(data['secret_answer']),
            is_active=True
        )
        db.session.add(session)
        db.session.flush()  # Get session.id for the QR target
        session.qr_code_data = QRService.checkin_url(session.id)
        db.session.commit()
        
        current_app.logger.info('Session %s created (%s - %s)', session.id, start, end)
        return session
    
    @classmethod
    def update_session(cls, session_id: int, data: Dict) -> Session:
        session = cls.get_session(session_id)
        errors = cls._text_errors(data, partial=True)
        if errors:
            raise ValidationError("Invalid input data", details=errors)
        is_active = optional_bool(data, 'is_active')
        
        if 'start_time' in data or 'end_time' in data:
            start = require_datetime(data['start_time'], 'start_time') if 'start_time' in data else session.start_time
            end = require_datetime(data['end_time'], 'end_time') if 'end_time' in data else session.end_time
            if start >= end:
                raise ValidationError("End time must be after start time")
            session.start_time = start
            session.end_time = end
        
        if 'theme' in data:
            session.theme = data['theme'].strip()
        if 'secret_question' in data:
            session.secret_question = data['secret_question'].strip()
        if 'secret_answer' in data:
            session.secret_answer_hash = hash_answer(data['secret_answer'])
        if is_active is not None:
            session.is_active = is_active
        
        if session.is_active:
            session.qr_code_data = QRService.checkin_url(session.id)
        
        db.session.commit()
        current_app.logger.info('Session %s updated', session.id)
        return session
    
    @classmethod
    def delete_session(cls, session_id: int) -> Dict:
        """Hard delete when no attendance exists, otherwise deactivate."""
        session = cls.get_session(session_id)
        attendance_count = session.attendance.count()
        result = {'session_id': session.id, 'theme': session.theme}
        
        if attendance_count > 0:
            session.is_active = False
            db.session.commit()
            current_app.logger.info('Session %s deactivated (%d attendance records)', session.id, attendance_count)
            result.update(deleted=False, deactivated=True, attendance_count=attendance_count)
        else:
            session.delete()
            current_app.logger.info('Session %s deleted', result['session_id'])
            result.update(deleted=True, deactivated=False)
        
        return result
    
    @staticmethod
    def list_sessions(
        status: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 1,
        per_page: int = 20,
        sort_order: str = 'desc',
        now: Optional[datetime] = None
    ):
        """Paginated listing; status filters use the same buffer as check-in."""
        now = now or utcnow()
        q = Session.query
        
        if status is not None and status not in STATUS_FILTERS:
            raise ValidationError(f"Status must be one of: {', '.join(STATUS_FILTERS)}")
        
        opens_before = now + configured_buffer()
        if status == 'active':
            q = q.filter(Session.is_active.is_(True), Session.start_time <= opens_before, Session.end_time >= now)
        elif status == 'upcoming':
            q = q.filter(Session.is_active.is_(True), Session.start_time > opens_before)
        elif status == 'completed':
            q = q.filter(Session.is_active.is_(True), Session.end_time < now)
        elif status == 'inactive':
            q = q.filter(Session.is_active.is_(False))
        
        if from_date:
            q = q.filter(Session.start_time >= from_date)
        if to_date:
            q = q.filter(Session.end_time <= to_date)
        
        order = Session.start_time.asc() if sort_order == 'asc' else Session.start_time.desc()
        return q.order_by(order).paginate(page=page, per_page=per_page, error_out=False)
    
    @staticmethod
    def attendance_counts(session_ids) -> Dict[int, int]:
        """Attendance count per session id, for listing pages."""
        if not session_ids:
            return {}
        rows = (
            db.session.query(Attendance.session_id, func.count(Attendance.id))
            .filter(Attendance.session_id.in_(list(session_ids)))
            .group_by(Attendance.session_id)
            .all()
        )
        return {session_id: count for session_id, count in rows}
    
    @staticmethod
    def get_stats(now: Optional[datetime] = None) -> Dict:
        """Overall session and attendance counts."""
        now = now or utcnow()
        since = now - timedelta(days=STATS_PERIOD_DAYS)
        opens_before = now + configured_buffer()
        
        total_sessions = Session.query.count()
        total_attendance = Attendance.query.count()
        
        return {
            'sessions': {
                'total': total_sessions,
                'active': Session.query.filter(
                    Session.is_active.is_(True),
                    Session.start_time <= opens_before,
                    Session.end_time >= now
                ).count(),
                'upcoming': Session.query.filter(
                    Session.is_active.is_(True),
                    Session.start_time > opens_before
                ).count(),
                'recent': Session.query.filter(Session.created_at >= since).count()
            },
            'attendance': {
                'total': total_attendance,
                'recent': Attendance.query.filter(Attendance.checked_in_at >= since).count(),
                'average_per_session': round(total_attendance / total_sessions) if total_sessions else 0
            },
            'period': f'{STATS_PERIOD_DAYS} days',
            'generated_at': isoformat(now)
        }
