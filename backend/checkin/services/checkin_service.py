"""Three-step check-in protocol.

    1. validate  - session exists, is active and is inside the check-in window
    2. verify    - the secret answer matches (same window re-check)
    3. submit    - the PIN resolves to an active member and attendance is recorded

No progress is kept between the calls. Each step re-derives everything from
the session id and the submitted data, so a client may retry, skip or
reorder steps; the attendance unique constraint is what keeps the data
consistent under any call order.
"""
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Optional

from flask import current_app

from checkin import db
from checkin.models.attendance import Attendance
from checkin.models.member import Member
from checkin.models.session import Session
from checkin.services.answer_verifier import verify_answer
from checkin.services.attendance_recorder import Provenance, record_attendance
from checkin.services.pin_service import PinService
from checkin.services.session_status import ensure_check_in_open, evaluate_session
from checkin.utils.exceptions import IncorrectAnswer, SessionNotFound, ValidationError
from checkin.utils.helpers import isoformat, utcnow

MAX_ANSWER_LENGTH = 100
RECENT_CHECKINS_LIMIT = 20

class CheckInService:
    """Service for the public check-in flow."""

    @staticmethod
    def _load_session(session_id: int) -> Session:
        session = db.session.get(Session, session_id)
        if session is None:
            raise SessionNotFound()
        return session

    @staticmethod
    def _session_summary(session: Session) -> Dict[str, Any]:
        return {
            'id': session.id,
            'theme': session.theme,
            'start_time': isoformat(session.start_time),
            'end_time': isoformat(session.end_time)
        }

    @classmethod
    def get_session_status(cls, session_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Public status view; never raises for inactive or closed sessions."""
        now = now or utcnow()
        session = cls._load_session(session_id)
        result = evaluate_session(session, now)

        data = cls._session_summary(session)
        data.update(result.to_dict())
        data['attendance_count'] = session.attendance.count()
        if result.can_check_in:
            data['secret_question'] = session.secret_question
        return data

    @classmethod
    def validate_session(cls, session_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Step 1: confirm the session is open and hand out its question."""
        now = now or utcnow()
        session = cls._load_session(session_id)
        result = ensure_check_in_open(session, now)

        data = cls._session_summary(session)
        data['secret_question'] = session.secret_question
        return {
            'valid': True,
            'within_time_window': session.start_time <= now <= session.end_time,
            'within_buffer_window': result.can_check_in,
            'session': data
        }

    @classmethod
    def verify_answer(cls, session_id: int, answer: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Step 2: check the secret answer under the same window rules."""
        if not isinstance(answer, str) or not answer.strip():
            raise ValidationError("Answer is required")
        if len(answer.strip()) > MAX_ANSWER_LENGTH:
            raise ValidationError(f"Answer must not exceed {MAX_ANSWER_LENGTH} characters")

        now = now or utcnow()
        session = cls._load_session(session_id)
        ensure_check_in_open(session, now)

        if not verify_answer(answer, session.secret_answer_hash):
            raise IncorrectAnswer()

        return {
            'correct': True,
            'session': {'id': session.id, 'theme': session.theme}
        }

    @classmethod
    def submit_check_in(
        cls,
        session_id: int,
        pin: Any,
        provenance: Optional[Provenance] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Step 3: resolve the PIN and record attendance.

        Without an explicit ``now`` the recorder reads the clock again, so
        its window re-check sees the instant after PIN verification.
        """
        session = cls._load_session(session_id)
        ensure_check_in_open(session, now or utcnow())

        member = PinService.resolve_member(pin)
        attendance = record_attendance(session, member, provenance, now)

        return {
            'member': {'id': member.id, 'name': member.name},
            'session': {'id': session.id, 'theme': session.theme},
            'attendance': {
                'id': attendance.id,
                'checked_in_at': isoformat(attendance.checked_in_at)
            }
        }

    @classmethod
    def get_check_in_stats(cls, session_id: int) -> Dict[str, Any]:
        """Admin view: totals, per-hour counts and the most recent check-ins."""
        session = cls._load_session(session_id)

        total = Attendance.query.filter_by(session_id=session.id).count()
        timestamps = db.session.query(Attendance.checked_in_at).filter(
            Attendance.session_id == session.id
        ).all()
        hourly = Counter(checked_in_at.hour for (checked_in_at,) in timestamps)

        recent = (
            db.session.query(Attendance, Member)
            .join(Member, Attendance.member_id == Member.id)
            .filter(Attendance.session_id == session.id)
            .order_by(Attendance.checked_in_at.desc())
            .limit(RECENT_CHECKINS_LIMIT)
            .all()
        )

        return {
            'session': cls._session_summary(session),
            'statistics': {
                'total_attendance': total,
                'hourly_stats': {str(hour): count for hour, count in sorted(hourly.items())},
                'recent_check_ins': [
                    {
                        'id': attendance.id,
                        'checked_in_at': isoformat(attendance.checked_in_at),
                        'member': {'id': member.id, 'name': member.name}
                    }
                    for attendance, member in recent
                ]
            }
        }

def log_rejection(step: str, session_id: int, error) -> None:
    """Record a business-rule rejection for operators."""
    current_app.logger.info('Check-in %s rejected for session %s: %s', step, session_id, error.kind)
