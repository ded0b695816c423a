"""PIN issuance and verification.

A PIN is a fixed-length numeric string, unique across the member directory.
At check-in the plaintext PIN is the lookup key and the stored hash is
re-verified independently; a member whose hash disagrees with the plaintext
column is treated exactly like an unknown PIN.
"""
import secrets

from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash

from checkin import db
from checkin.models.member import Member
from checkin.utils.exceptions import InvalidPin, MemberInactive, PinGenerationError
from checkin.utils.validators import Validator

class PinService:
    """Service for PIN operations."""
    
    @staticmethod
    def pin_length() -> int:
        return current_app.config.get('PIN_LENGTH', 5)
    
    @staticmethod
    def hash_pin(pin: str) -> str:
        return generate_password_hash(pin, method=current_app.config['SECRET_HASH_METHOD'])
    
    @staticmethod
    def verify_pin(pin: str, pin_hash: str) -> bool:
        return bool(pin_hash) and check_password_hash(pin_hash, pin)
    
    @staticmethod
    def validate_pin_format(pin) -> str:
        """Reject anything but exactly PIN_LENGTH digits, before any lookup."""
        length = PinService.pin_length()
        if not Validator.validate_pin_format(pin, length):
            raise InvalidPin(f"PIN must be exactly {length} digits")
        return pin
    
    @staticmethod
    def random_pin(length: int) -> str:
        """Uniformly random PIN without a leading zero."""
        low = 10 ** (length - 1)
        return str(low + secrets.randbelow(9 * low))
    
    @classmethod
    def generate_unique_pin(cls) -> str:
        """Draw random PINs until one is unused, within PIN_MAX_ATTEMPTS."""
        length = cls.pin_length()
        max_attempts = current_app.config.get('PIN_MAX_ATTEMPTS', 100)
        
        for _ in range(max_attempts):
            pin = cls.random_pin(length)
            exists = db.session.query(Member.id).filter_by(pin=pin).first()
            if not exists:
                return pin
        
        current_app.logger.error(
            'PIN generation exhausted %d attempts; directory may be saturated', max_attempts
        )
        raise PinGenerationError('Unable to generate unique PIN after maximum attempts')
    
    @classmethod
    def generate_member_pin(cls) -> tuple:
        """Return (pin, pin_hash) for a new member."""
        pin = cls.generate_unique_pin()
        return pin, cls.hash_pin(pin)
    
    @classmethod
    def resolve_member(cls, pin) -> Member:
        """Resolve a submitted PIN to an active member.
        
        Order: format check, plaintext lookup, active flag, hash re-verification.
        """
        pin = cls.validate_pin_format(pin)
        
        member = Member.query.filter_by(pin=pin).first()
        if member is None:
            raise InvalidPin()
        
        if not member.is_active:
            raise MemberInactive()
        
        if not cls.verify_pin(pin, member.pin_hash):
            current_app.logger.warning(
                'PIN hash mismatch for member %s; plaintext and hash are out of sync', member.id
            )
            raise InvalidPin()
        
        return member
