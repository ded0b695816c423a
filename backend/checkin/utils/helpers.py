"""Helper functions for the application."""
from datetime import datetime, timezone
from typing import Any, Optional

from flask import jsonify

def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime, passing None through."""
    return value.isoformat() if value is not None else None

def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into a naive UTC datetime."""
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'kind': 'http_error',
        'message': getattr(error, 'description', None) or str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }
    
    if data is not None:
        response['data'] = data
    
    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, kind: str = 'bad_request', **extra):
    """Return consistent error response."""
    body = {
        'error': True,
        'kind': kind,
        'message': message,
        'status_code': status_code
    }
    body.update(extra)
    return jsonify(body), status_code

def paginate_args(args, config) -> tuple:
    """Read page/per_page query arguments, clamped to the configured maximum."""
    page = max(args.get('page', 1, type=int) or 1, 1)
    per_page = args.get('per_page', config.get('DEFAULT_PAGE_SIZE', 20), type=int) or 20
    per_page = min(max(per_page, 1), config.get('MAX_PAGE_SIZE', 100))
    return page, per_page

def pagination_dict(pagination) -> dict:
    """Describe a Flask-SQLAlchemy pagination object."""
    return {
        'total': pagination.total,
        'page': pagination.page,
        'per_page': pagination.per_page,
        'pages': pagination.pages,
        'has_next': pagination.has_next,
        'has_prev': pagination.has_prev
    }
