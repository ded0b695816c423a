"""Secret-answer hashing and verification."""
from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash

def normalize_answer(answer: str) -> str:
    """Trim and lower-case; applied identically when hashing and verifying."""
    return answer.strip().lower()

def hash_answer(answer: str) -> str:
    return generate_password_hash(
        normalize_answer(answer), method=current_app.config['SECRET_HASH_METHOD']
    )

def verify_answer(submitted: str, answer_hash: str) -> bool:
    """Constant-time comparison of a submitted answer against the stored hash."""
    if not isinstance(submitted, str) or not answer_hash:
        return False
    return check_password_hash(answer_hash, normalize_answer(submitted))
