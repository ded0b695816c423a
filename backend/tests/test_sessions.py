"""Test session directory endpoints."""
import json
from datetime import timedelta

from checkin.models.session import Session
from checkin.services.answer_verifier import verify_answer
from checkin.utils.helpers import utcnow

def body(response):
    return json.loads(response.data)

def session_payload(**overrides):
    now = utcnow()
    payload = {
        'theme': 'Quarterly review',
        'start_time': (now + timedelta(hours=1)).isoformat(),
        'end_time': (now + timedelta(hours=3)).isoformat(),
        'secret_question': 'What is on the whiteboard?',
        'secret_answer': '  Brown  '
    }
    payload.update(overrides)
    return payload

def test_requires_admin(client):
    assert client.post('/api/sessions', json=session_payload()).status_code == 401

def test_create_session(client, admin_headers):
    response = client.post('/api/sessions', headers=admin_headers, json=session_payload())
    
    assert response.status_code == 201
    data = body(response)['data']
    assert data['status'] == 'upcoming'
    assert data['is_active'] is True
    assert data['qr_code_data'] == f"http://checkin.test/checkin/{data['id']}"
    assert data['qr_code'].startswith('data:image/png;base64,')
    assert '<svg' in data['qr_code_svg']
    assert 'secret_answer_hash' not in data
    
    session = Session.query.one()
    assert verify_answer('BROWN', session.secret_answer_hash)

def test_create_session_rejects_bad_time_range(client, admin_headers):
    now = utcnow()
    response = client.post('/api/sessions', headers=admin_headers, json=session_payload(
        start_time=(now + timedelta(hours=2)).isoformat(),
        end_time=(now + timedelta(hours=2)).isoformat()
    ))
    assert response.status_code == 400
    assert body(response)['message'] == 'End time must be after start time'
    
    response = client.post('/api/sessions', headers=admin_headers, json=session_payload(
        start_time=(now - timedelta(hours=3)).isoformat(),
        end_time=(now - timedelta(hours=1)).isoformat()
    ))
    assert response.status_code == 400
    assert body(response)['message'] == 'End time must be in the future'

def test_create_session_validation(client, admin_headers):
    response = client.post('/api/sessions', headers=admin_headers,
        json=session_payload(theme='ab', start_time='yesterday'))
    assert response.status_code == 400
    assert body(response)['kind'] == 'validation_error'

def test_timezone_aware_times_are_stored_as_utc(client, admin_headers):
    start = (utcnow() + timedelta(hours=1)).replace(microsecond=0)
    end = start + timedelta(hours=2)
    response = client.post('/api/sessions', headers=admin_headers, json=session_payload(
        start_time=(start + timedelta(hours=2)).isoformat() + '+02:00',
        end_time=end.isoformat() + 'Z'
    ))
    assert response.status_code == 201
    session = Session.query.one()
    assert session.start_time == start
    assert session.end_time == end

def test_update_session(client, admin_headers, session_factory):
    session = session_factory(answer='brown')
    response = client.patch(f'/api/sessions/{session.id}', headers=admin_headers,
        json={'theme': 'Renamed', 'secret_answer': 'Green'})
    assert response.status_code == 200
    assert body(response)['data']['theme'] == 'Renamed'
    
    session = Session.query.one()
    assert verify_answer('green', session.secret_answer_hash)
    assert not verify_answer('brown', session.secret_answer_hash)

def test_update_rejects_inverted_range(client, admin_headers, session_factory):
    session = session_factory()
    response = client.patch(f'/api/sessions/{session.id}', headers=admin_headers,
        json={'end_time': (session.start_time - timedelta(minutes=1)).isoformat()})
    assert response.status_code == 400
    assert Session.query.one().end_time > Session.query.one().start_time

def test_delete_without_attendance_is_hard(client, admin_headers, session_factory):
    session = session_factory()
    response = client.delete(f'/api/sessions/{session.id}', headers=admin_headers)
    assert response.status_code == 200
    assert body(response)['data']['deleted'] is True
    assert Session.query.count() == 0

def test_delete_with_attendance_is_soft(client, admin_headers, member_factory, session_factory):
    member_factory(pin='12345')
    session = session_factory()
    client.post(f'/api/checkin/{session.id}/submit', json={'pin': '12345'})
    
    response = client.delete(f'/api/sessions/{session.id}', headers=admin_headers)
    data = body(response)['data']
    assert data['deactivated'] is True
    assert data['attendance_count'] == 1
    assert Session.query.one().is_active is False

def test_list_sessions_by_status(client, admin_headers, session_factory):
    now = utcnow()
    session_factory(theme='Open now')
    session_factory(theme='Opens in buffer', start=now + timedelta(minutes=3))
    session_factory(theme='Later', start=now + timedelta(days=1))
    session_factory(theme='Done', start=now - timedelta(days=1))
    session_factory(theme='Off', is_active=False)
    
    def themes(status):
        response = client.get(f'/api/sessions?status={status}', headers=admin_headers)
        return sorted(s['theme'] for s in body(response)['data']['sessions'])
    
    assert themes('active') == ['Open now', 'Opens in buffer']
    assert themes('upcoming') == ['Later']
    assert themes('completed') == ['Done']
    assert themes('inactive') == ['Off']
    
    response = client.get('/api/sessions?status=bogus', headers=admin_headers)
    assert response.status_code == 400

def test_get_session_with_attendance(client, admin_headers, member_factory, session_factory):
    member_factory(pin='12345', name='Ada')
    session = session_factory()
    client.post(f'/api/checkin/{session.id}/submit', json={'pin': '12345'})
    
    data = body(client.get(f'/api/sessions/{session.id}', headers=admin_headers))['data']
    assert data['attendance_count'] == 1
    assert data['attendance'][0]['member']['name'] == 'Ada'

def test_session_stats(client, admin_headers, member_factory, session_factory):
    member_factory(pin='12345')
    session = session_factory()
    session_factory(start=utcnow() + timedelta(days=2))
    client.post(f'/api/checkin/{session.id}/submit', json={'pin': '12345'})
    
    data = body(client.get('/api/sessions/stats', headers=admin_headers))['data']
    assert data['sessions'] == {'total': 2, 'active': 1, 'upcoming': 1, 'recent': 2}
    assert data['attendance']['total'] == 1

def test_download_qr(client, admin_headers, session_factory):
    session = session_factory()
    
    response = client.get(f'/api/sessions/{session.id}/qr', headers=admin_headers)
    assert response.status_code == 200
    assert response.mimetype == 'image/png'
    assert response.data.startswith(b'\x89PNG')
    assert f'session-{session.id}-qr-code.png' in response.headers['Content-Disposition']
    
    response = client.get(f'/api/sessions/{session.id}/qr?format=svg', headers=admin_headers)
    assert response.mimetype == 'image/svg+xml'
    assert b'<svg' in response.data
    
    response = client.get(f'/api/sessions/{session.id}/qr?format=gif', headers=admin_headers)
    assert response.status_code == 400

def test_download_qr_for_inactive_session(client, admin_headers, session_factory):
    session = session_factory(is_active=False)
    response = client.get(f'/api/sessions/{session.id}/qr', headers=admin_headers)
    assert response.status_code == 400
    assert body(response)['kind'] == 'session_inactive'
