"""Demo data for local development."""
from datetime import timedelta

from checkin.services.member_service import MemberService
from checkin.services.session_service import SessionService
from checkin.utils.helpers import utcnow

DEMO_ANSWER = 'brown'

class SeedService:
    """Create one member and one session that is open for check-in now."""
    
    @staticmethod
    def seed_demo() -> dict:
        now = utcnow()
        member = MemberService.create_member({
            'name': 'Demo Member',
            'email': f'demo+{int(now.timestamp())}@example.com'
        })
        session = SessionService.create_session({
            'theme': 'Demo session',
            'start_time': now.isoformat(),
            'end_time': (now + timedelta(hours=2)).isoformat(),
            'secret_question': 'What colour is the front door?',
            'secret_answer': DEMO_ANSWER
        }, now=now)
        
        return {
            'pin': member.pin,
            'checkin_url': session.qr_code_data,
            'answer': DEMO_ANSWER
        }
