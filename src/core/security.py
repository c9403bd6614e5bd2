"""
Password hashing and temporary password generation.
"""
import logging
import secrets
from functools import lru_cache
from werkzeug.security import generate_password_hash, check_password_hash

from core.errors import ValidationError

logger = logging.getLogger(__name__)

# No look-alike characters (0/O/o, 1/l/I) so passwords can be read out or copied by hand.
TEMP_PASSWORD_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789'
TEMP_PASSWORD_MIN_LENGTH = 8


def hash_password(password: str) -> str:
    """Return a salted scrypt hash of the password."""
    if not isinstance(password, str) or not password:
        raise ValidationError('Password is required')
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Never raises."""
    if not isinstance(password, str) or not isinstance(password_hash, str) or not password_hash:
        return False
    try:
        return check_password_hash(password_hash, password)
    except (ValueError, TypeError) as e:
        logger.warning(f'Unusable password hash: {e}')
        return False


@lru_cache(maxsize=1)
def _unmatchable_hash() -> str:
    return generate_password_hash(secrets.token_urlsafe(32))


def burn_verification(password: str) -> bool:
    """Spend the same work as verify_password when there is no account to check.

    Keeps failed logins for unknown identifiers as slow as wrong passwords.
    Always returns False.
    """
    verify_password(password, _unmatchable_hash())
    return False


def generate_temp_password(length: int = 12) -> str:
    if length < TEMP_PASSWORD_MIN_LENGTH:
        raise ValueError(f'Temporary passwords must be at least {TEMP_PASSWORD_MIN_LENGTH} characters.')
    return ''.join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))
