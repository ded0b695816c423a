"""Shared fixtures for the check-in service tests."""
from datetime import timedelta
from itertools import count

import pytest
from flask_jwt_extended import create_access_token

from checkin import create_app, db
from checkin.models.admin import Admin
from checkin.models.member import Member
from checkin.models.session import Session
from checkin.services.answer_verifier import hash_answer
from checkin.services.pin_service import PinService
from checkin.services.qr_service import QRService
from checkin.utils.helpers import utcnow

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def admin(app):
    """Create an active admin."""
    admin = Admin(email='admin@example.com', name='Admin User')
    admin.set_password('password123')
    return admin.save()

@pytest.fixture
def admin_headers(admin):
    token = create_access_token(identity=str(admin.id))
    return {'Authorization': f'Bearer {token}'}

@pytest.fixture
def member_factory(app):
    """Create members; an explicit PIN is hashed, otherwise one is issued."""
    sequence = count(1)

    def make(pin=None, name=None, email=None, is_active=True):
        number = next(sequence)
        pin = pin or PinService.generate_unique_pin()
        member = Member(
            name=name or f'Member {number}',
            email=email or f'member{number}@example.com',
            pin=pin,
            pin_hash=PinService.hash_pin(pin),
            is_active=is_active
        )
        return member.save()

    return make

@pytest.fixture
def session_factory(app):
    """Create sessions directly, bypassing create-time validation."""
    def make(start=None, end=None, answer='brown', is_active=True,
             theme='Weekly meetup', question='What colour is the front door?'):
        now = utcnow()
        start = start or now - timedelta(minutes=10)
        end = end or start + timedelta(hours=2)
        session = Session(
            theme=theme,
            start_time=start,
            end_time=end,
            secret_question=question,
            secret_answer_hash=hash_answer(answer),
            is_active=is_active
        )
        db.session.add(session)
        db.session.flush()
        session.qr_code_data = QRService.checkin_url(session.id)
        db.session.commit()
        return session

    return make
