"""Tests for the attendance recorder and its uniqueness guarantee."""
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from checkin import create_app, db
from checkin.models.attendance import Attendance
from checkin.services import attendance_recorder
from checkin.services.attendance_recorder import Provenance, attendance_created, record_attendance
from checkin.services.checkin_service import CheckInService
from checkin.utils.exceptions import DuplicateCheckIn, OutsideWindow
from checkin.utils.helpers import utcnow

def test_first_submission_creates_record(app, member_factory, session_factory):
    member = member_factory(pin='12345')
    session = session_factory()
    before = utcnow()

    attendance = record_attendance(session, member, Provenance('10.0.0.1', 'pytest'))

    assert attendance.id is not None
    assert attendance.checked_in_at >= before
    assert attendance.ip_address == '10.0.0.1'
    assert attendance.user_agent == 'pytest'
    assert Attendance.query.count() == 1

def test_second_submission_returns_original_timestamp(app, member_factory, session_factory):
    member = member_factory()
    session = session_factory()
    first = record_attendance(session, member)

    with pytest.raises(DuplicateCheckIn) as excinfo:
        record_attendance(session, member)

    assert excinfo.value.checked_in_at == first.checked_in_at
    assert excinfo.value.attendance_id == first.id
    assert Attendance.query.count() == 1

def test_same_member_different_sessions(app, member_factory, session_factory):
    member = member_factory()
    record_attendance(session_factory(theme='One'), member)
    record_attendance(session_factory(theme='Two'), member)
    assert Attendance.query.filter_by(member_id=member.id).count() == 2

def test_window_is_rechecked_at_record_time(app, member_factory, session_factory):
    session = session_factory()
    member = member_factory()

    with pytest.raises(OutsideWindow) as excinfo:
        record_attendance(session, member, now=session.end_time + timedelta(seconds=1))

    assert excinfo.value.reason == 'expired'
    assert Attendance.query.count() == 0

def test_submit_rechecks_window_after_pin_verification(app, member_factory, session_factory, monkeypatch):
    """The session closing while the PIN is verified still rejects the check-in."""
    member_factory(pin='12345')
    session = session_factory()
    after_close = session.end_time + timedelta(seconds=1)
    monkeypatch.setattr(attendance_recorder, 'utcnow', lambda: after_close)

    with pytest.raises(OutsideWindow) as excinfo:
        CheckInService.submit_check_in(session.id, '12345')

    assert excinfo.value.reason == 'expired'
    assert Attendance.query.count() == 0

def test_submit_uses_explicit_now_for_every_check(app, member_factory, session_factory, monkeypatch):
    member_factory(pin='12345')
    session = session_factory()
    closes_at = session.end_time
    monkeypatch.setattr(attendance_recorder, 'utcnow', lambda: closes_at + timedelta(seconds=1))

    result = CheckInService.submit_check_in(session.id, '12345', now=closes_at)

    assert result['attendance']['id'] is not None
    assert Attendance.query.count() == 1

def test_racing_insert_becomes_duplicate(app, member_factory, session_factory, monkeypatch):
    """A row committed between the pre-check and the insert trips the unique constraint."""
    member = member_factory()
    session = session_factory()
    winner = Attendance(session_id=session.id, member_id=member.id, checked_in_at=utcnow())
    winner.save()

    real_existing = attendance_recorder._existing
    calls = []

    def stale_precheck(session_id, member_id):
        calls.append(session_id)
        if len(calls) == 1:
            return None
        return real_existing(session_id, member_id)

    monkeypatch.setattr(attendance_recorder, '_existing', stale_precheck)

    with pytest.raises(DuplicateCheckIn) as excinfo:
        record_attendance(session, member)

    assert excinfo.value.checked_in_at == winner.checked_in_at
    assert Attendance.query.count() == 1

def test_attendance_created_signal(app, member_factory, session_factory):
    received = []

    def listener(sender, attendance):
        received.append(attendance.id)

    with attendance_created.connected_to(listener, app):
        attendance = record_attendance(session_factory(), member_factory())
        with pytest.raises(DuplicateCheckIn):
            record_attendance(attendance.session, attendance.member)

    assert received == [attendance.id]

@pytest.fixture
def file_app(tmp_path):
    """App backed by an on-disk SQLite database so threads get real connections."""
    app = create_app(
        'testing',
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'concurrency.db'}",
        SQLALCHEMY_ENGINE_OPTIONS={'connect_args': {'timeout': 30}}
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()

def test_parallel_duplicate_submissions_create_one_record(file_app):
    from checkin.models.member import Member
    from checkin.models.session import Session
    from checkin.services.answer_verifier import hash_answer
    from checkin.services.pin_service import PinService

    with file_app.app_context():
        now = utcnow()
        member = Member(name='Racer', email='racer@example.com', pin='12345',
                        pin_hash=PinService.hash_pin('12345'))
        session = Session(theme='Race', start_time=now - timedelta(minutes=1),
                          end_time=now + timedelta(hours=1), secret_question='Door colour?',
                          secret_answer_hash=hash_answer('brown'))
        db.session.add_all([member, session])
        db.session.commit()
        session_id = session.id

    def submit(_):
        with file_app.app_context():
            try:
                result = CheckInService.submit_check_in(session_id, '12345')
                return 'created', result['attendance']['checked_in_at']
            except DuplicateCheckIn as error:
                return 'duplicate', error.checked_in_at.isoformat()

    with ThreadPoolExecutor(max_workers=50) as executor:
        outcomes = list(executor.map(submit, range(50)))

    created = [ts for kind, ts in outcomes if kind == 'created']
    duplicates = [ts for kind, ts in outcomes if kind == 'duplicate']
    assert len(created) == 1
    assert len(duplicates) == 49
    assert set(duplicates) == set(created)

    with file_app.app_context():
        assert Attendance.query.count() == 1
