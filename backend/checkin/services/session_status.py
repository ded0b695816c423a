"""Session status evaluation.

Maps a session's stored time bounds and active flag, plus the current
instant, to a display status and a check-in-allowed flag. Nothing here is
cached: every request re-evaluates against the wall clock.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from flask import current_app, has_app_context

from checkin.utils.exceptions import OutsideWindow, SessionInactive

DEFAULT_BUFFER_MINUTES = 5

class SessionStatus(Enum):
    """Session status enumeration."""
    INACTIVE = "inactive"
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"

@dataclass(frozen=True)
class SessionStatusResult:
    """Outcome of evaluating one session at one instant."""
    status: SessionStatus
    can_check_in: bool
    buffer_start: datetime
    reason: Optional[str] = None  # not_started / expired when the window is closed

    def to_dict(self) -> dict:
        return {
            'status': self.status.value,
            'can_check_in': self.can_check_in,
            'check_in_opens_at': self.buffer_start.isoformat(),
            'reason': self.reason
        }

def configured_buffer() -> timedelta:
    """The single pre-open buffer shared by every check-in step."""
    minutes = DEFAULT_BUFFER_MINUTES
    if has_app_context():
        minutes = current_app.config.get('CHECKIN_BUFFER_MINUTES', DEFAULT_BUFFER_MINUTES)
    return timedelta(minutes=minutes)

def evaluate_session_status(
    start_time: datetime,
    end_time: datetime,
    is_active: bool,
    now: datetime,
    buffer: Optional[timedelta] = None
) -> SessionStatusResult:
    """Evaluate status; both window bounds are inclusive."""
    if buffer is None:
        buffer = configured_buffer()
    buffer_start = start_time - buffer

    if now < buffer_start:
        status, reason = SessionStatus.UPCOMING, OutsideWindow.NOT_STARTED
    elif now > end_time:
        status, reason = SessionStatus.COMPLETED, OutsideWindow.EXPIRED
    else:
        status, reason = SessionStatus.ACTIVE, None

    if not is_active:
        return SessionStatusResult(SessionStatus.INACTIVE, False, buffer_start, reason)

    return SessionStatusResult(status, reason is None, buffer_start, reason)

def evaluate_session(session, now: datetime, buffer: Optional[timedelta] = None) -> SessionStatusResult:
    """Evaluate a Session model instance."""
    return evaluate_session_status(
        session.start_time, session.end_time, session.is_active, now, buffer
    )

def ensure_check_in_open(session, now: datetime, buffer: Optional[timedelta] = None) -> SessionStatusResult:
    """Raise SessionInactive or OutsideWindow unless check-in is open right now."""
    result = evaluate_session(session, now, buffer)

    if result.status is SessionStatus.INACTIVE:
        raise SessionInactive()

    if not result.can_check_in:
        raise OutsideWindow(
            result.reason,
            opens_at=result.buffer_start if result.reason == OutsideWindow.NOT_STARTED else None,
            closed_at=session.end_time if result.reason == OutsideWindow.EXPIRED else None
        )

    return result
