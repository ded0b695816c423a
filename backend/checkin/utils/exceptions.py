"""Caller-visible error taxonomy.

Every business-rule rejection is a ``CheckInError`` subclass with a stable
``kind`` string that clients switch on, a human message and an HTTP status.
Storage and connectivity faults are never wrapped in these classes; they are
logged and surfaced as a generic internal error instead.
"""
from datetime import datetime
from typing import Any, Dict, Optional


class CheckInError(Exception):
    """Base class for recoverable, caller-visible failures."""

    kind = 'checkin_error'
    status_code = 400
    default_message = 'Check-in failed'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> Dict[str, Any]:
        """Kind-specific fields merged into the error envelope."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        data = {'kind': self.kind, 'message': self.message}
        data.update(self.extra())
        return data


class ValidationError(CheckInError):
    kind = 'validation_error'
    default_message = 'Invalid input data'

    def __init__(self, message: Optional[str] = None, details: Optional[list] = None):
        super().__init__(message)
        self.details = details or []

    def extra(self):
        return {'details': self.details} if self.details else {}


class NotFound(CheckInError):
    kind = 'not_found'
    status_code = 404
    default_message = 'Resource not found'


class Conflict(CheckInError):
    kind = 'conflict'
    status_code = 409
    default_message = 'Resource already exists'


class AuthenticationFailed(CheckInError):
    kind = 'authentication_failed'
    status_code = 401
    default_message = 'Invalid email or password'


class SessionNotFound(CheckInError):
    kind = 'session_not_found'
    status_code = 404
    default_message = 'The requested session does not exist'


class SessionInactive(CheckInError):
    kind = 'session_inactive'
    default_message = 'This session is no longer active'


class OutsideWindow(CheckInError):
    """Check-in attempted before the buffer opens or after the session ends."""

    kind = 'outside_window'
    default_message = 'Check-in is not currently available for this session'

    NOT_STARTED = 'not_started'
    EXPIRED = 'expired'

    def __init__(self, reason: str, message: Optional[str] = None,
                 opens_at: Optional[datetime] = None, closed_at: Optional[datetime] = None):
        if message is None:
            if reason == self.NOT_STARTED and opens_at is not None:
                message = f'Check-in opens at {opens_at.isoformat()}'
            elif reason == self.EXPIRED and closed_at is not None:
                message = f'Check-in closed at {closed_at.isoformat()}'
        super().__init__(message)
        self.reason = reason
        self.opens_at = opens_at
        self.closed_at = closed_at

    def extra(self):
        data = {'reason': self.reason}
        if self.opens_at is not None:
            data['opens_at'] = self.opens_at.isoformat()
        if self.closed_at is not None:
            data['closed_at'] = self.closed_at.isoformat()
        return data


class IncorrectAnswer(CheckInError):
    kind = 'incorrect_answer'
    default_message = 'The answer provided is incorrect. Please try again.'

    def extra(self):
        return {'correct': False}


class InvalidPin(CheckInError):
    kind = 'invalid_pin'
    default_message = 'The PIN provided is not valid'


class MemberInactive(CheckInError):
    kind = 'member_inactive'
    status_code = 403
    default_message = 'Your membership is currently inactive. Please contact administration.'


class DuplicateCheckIn(CheckInError):
    """The (session, member) pair already has an attendance record."""

    kind = 'duplicate_checkin'
    status_code = 409
    default_message = 'You have already checked in for this session'

    def __init__(self, checked_in_at: Optional[datetime], attendance_id: Optional[int] = None,
                 message: Optional[str] = None):
        if message is None and checked_in_at is not None:
            message = f'You already checked in at {checked_in_at.isoformat()}'
        super().__init__(message)
        self.checked_in_at = checked_in_at
        self.attendance_id = attendance_id

    def extra(self):
        return {
            'attendance': {
                'id': self.attendance_id,
                'checked_in_at': self.checked_in_at.isoformat() if self.checked_in_at else None
            }
        }


class RateLimited(CheckInError):
    kind = 'rate_limited'
    status_code = 429
    default_message = 'Too many attempts. Please wait before trying again.'


class PinGenerationError(RuntimeError):
    """Raised when no unused PIN could be found within the attempt budget."""
