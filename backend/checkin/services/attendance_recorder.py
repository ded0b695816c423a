"""Attendance recording under the one-record-per-(session, member) rule."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from blinker import Namespace
from flask import current_app
from sqlalchemy.exc import IntegrityError

from checkin import db
from checkin.models.attendance import Attendance
from checkin.models.member import Member
from checkin.models.session import Session
from checkin.services.session_status import ensure_check_in_open
from checkin.utils.exceptions import DuplicateCheckIn
from checkin.utils.helpers import utcnow

_signals = Namespace()

#: Sent after an attendance record is committed; receivers get ``attendance=``.
attendance_created = _signals.signal('attendance-created')

@dataclass(frozen=True)
class Provenance:
    """Where a check-in request came from."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

def _existing(session_id: int, member_id: int) -> Optional[Attendance]:
    return Attendance.query.filter_by(session_id=session_id, member_id=member_id).first()

def record_attendance(
    session: Session,
    member: Member,
    provenance: Optional[Provenance] = None,
    now: Optional[datetime] = None
) -> Attendance:
    """Create the attendance fact, or raise DuplicateCheckIn with the original timestamp.

    The window is re-checked here even if the caller already did. The
    pre-check only short-circuits the common case; the unique constraint
    decides racing inserts.
    """
    now = now or utcnow()
    ensure_check_in_open(session, now)
    provenance = provenance or Provenance()

    existing = _existing(session.id, member.id)
    if existing is not None:
        raise DuplicateCheckIn(existing.checked_in_at, existing.id)

    attendance = Attendance(
        session_id=session.id,
        member_id=member.id,
        checked_in_at=utcnow(),
        ip_address=provenance.ip_address,
        user_agent=(provenance.user_agent or '')[:500] or None
    )

    try:
        db.session.add(attendance)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        winner = _existing(session.id, member.id)
        if winner is None:
            raise
        current_app.logger.info(
            'Concurrent duplicate check-in for session %s member %s', session.id, member.id
        )
        raise DuplicateCheckIn(winner.checked_in_at, winner.id)

    current_app.logger.info(
        'Member %s checked in to session %s (attendance %s)', member.id, session.id, attendance.id
    )
    attendance_created.send(current_app._get_current_object(), attendance=attendance)
    return attendance
