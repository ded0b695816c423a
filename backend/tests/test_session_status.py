"""Tests for the session status evaluator."""
from datetime import datetime, timedelta

import pytest

from checkin.services.session_status import (
    SessionStatus, configured_buffer, ensure_check_in_open, evaluate_session_status
)
from checkin.utils.exceptions import OutsideWindow, SessionInactive

T = datetime(2026, 3, 14, 10, 0, 0)
END = T + timedelta(hours=2)
BUFFER = timedelta(minutes=5)

class FakeSession:
    def __init__(self, start=T, end=END, is_active=True):
        self.start_time = start
        self.end_time = end
        self.is_active = is_active

def evaluate(now, is_active=True):
    return evaluate_session_status(T, END, is_active, now, BUFFER)

@pytest.mark.parametrize('now', [
    T - timedelta(days=1),
    T - timedelta(minutes=4),
    T,
    T + timedelta(hours=1),
    END,
    END + timedelta(days=1),
])
def test_inactive_session_never_allows_check_in(now):
    result = evaluate(now, is_active=False)
    assert result.status is SessionStatus.INACTIVE
    assert result.can_check_in is False

@pytest.mark.parametrize('now, expected', [
    (T - BUFFER - timedelta(microseconds=1), False),
    (T - BUFFER, True),
    (T, True),
    (END, True),
    (END + timedelta(microseconds=1), False),
])
def test_window_bounds_are_inclusive(now, expected):
    assert evaluate(now).can_check_in is expected

def test_status_follows_time_order():
    assert evaluate(T - timedelta(minutes=6)).status is SessionStatus.UPCOMING
    assert evaluate(T - timedelta(minutes=4)).status is SessionStatus.ACTIVE
    assert evaluate(T + timedelta(minutes=30)).status is SessionStatus.ACTIVE
    assert evaluate(END + timedelta(seconds=1)).status is SessionStatus.COMPLETED

def test_buffer_start_is_reported():
    result = evaluate(T)
    assert result.buffer_start == T - BUFFER
    assert result.to_dict()['check_in_opens_at'] == (T - BUFFER).isoformat()

def test_six_minutes_early_is_not_started():
    with pytest.raises(OutsideWindow) as excinfo:
        ensure_check_in_open(FakeSession(), T - timedelta(minutes=6), BUFFER)
    assert excinfo.value.reason == 'not_started'
    assert excinfo.value.opens_at == T - BUFFER

def test_four_minutes_early_is_allowed():
    result = ensure_check_in_open(FakeSession(), T - timedelta(minutes=4), BUFFER)
    assert result.can_check_in is True

def test_one_second_after_end_is_expired():
    with pytest.raises(OutsideWindow) as excinfo:
        ensure_check_in_open(FakeSession(), END + timedelta(seconds=1), BUFFER)
    assert excinfo.value.reason == 'expired'
    assert excinfo.value.to_dict()['closed_at'] == END.isoformat()

def test_inactive_is_reported_before_window():
    with pytest.raises(SessionInactive):
        ensure_check_in_open(FakeSession(is_active=False), T, BUFFER)

def test_default_buffer_without_app_context():
    assert configured_buffer() == timedelta(minutes=5)

def test_buffer_comes_from_config(app):
    app.config['CHECKIN_BUFFER_MINUTES'] = 15
    assert configured_buffer() == timedelta(minutes=15)
    result = evaluate_session_status(T, END, True, T - timedelta(minutes=10))
    assert result.can_check_in is True
