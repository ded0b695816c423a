"""Validation utilities for the application."""
import re
from typing import Any, Dict, List, Optional

from checkin.utils.exceptions import ValidationError
from checkin.utils.helpers import parse_datetime

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?[\d\s\-\(\)]+$')

class Validator:
    """Validation helper class."""
    
    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        return bool(EMAIL_PATTERN.match(email))
    
    @staticmethod
    def validate_phone(phone: str) -> bool:
        """Validate phone format; empty is allowed."""
        if not phone:
            return True
        return bool(PHONE_PATTERN.match(phone))
    
    @staticmethod
    def validate_pin_format(pin: Any, length: int) -> bool:
        """A PIN is exactly ``length`` ASCII digits."""
        return (
            isinstance(pin, str)
            and len(pin) == length
            and pin.isascii()
            and pin.isdigit()
        )
    
    @staticmethod
    def validate_text(value: Any, field: str, min_length: int, max_length: int) -> List[str]:
        """Validate a trimmed free-text field."""
        errors = []
        
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{field} is required")
        elif len(value.strip()) < min_length:
            errors.append(f"{field} must be at least {min_length} characters long")
        elif len(value.strip()) > max_length:
            errors.append(f"{field} must not exceed {max_length} characters")
        
        return errors
    
    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []
        
        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field} is required")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

def get_json_body(request) -> Dict[str, Any]:
    """Return the JSON object body or raise ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data

def require_fields(data: Dict, required_fields: List[str]) -> None:
    result = Validator.validate_required_fields(data, required_fields)
    if not result['is_valid']:
        raise ValidationError("Missing required fields", details=result['errors'])

def require_datetime(value: Any, field: str):
    """Parse an ISO-8601 field or raise ValidationError."""
    try:
        parsed = parse_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO-8601 datetime")
    if parsed is None:
        raise ValidationError(f"{field} is required")
    return parsed

def optional_bool(data: Dict, field: str) -> Optional[bool]:
    if field not in data:
        return None
    value = data[field]
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean")
    return value
