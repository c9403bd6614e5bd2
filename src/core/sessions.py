"""
Signed session tokens carried in a cookie.

Verification only decodes and checks the signed claims. It never touches
storage, so the request gate can run it ahead of every page request.
"""
import logging
from itsdangerous import BadData, URLSafeTimedSerializer

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = 'club_session'
SESSION_SALT = 'club-session'
DEFAULT_MAX_AGE = 7 * 24 * 60 * 60


class SessionClaims:
    def __init__(self, user_id, email, full_name, is_admin):
        self.user_id = user_id
        self.email = email
        self.full_name = full_name
        self.is_admin = bool(is_admin)

    @classmethod
    def for_player(cls, player):
        return cls(player.id, player.email, player.full_name, player.is_admin)

    def to_payload(self) -> dict:
        return {
            'userId': self.user_id,
            'email': self.email,
            'fullName': self.full_name,
            'isAdmin': self.is_admin,
        }

    def __eq__(self, other):
        return isinstance(other, SessionClaims) and self.to_payload() == other.to_payload()

    def __repr__(self):
        return f"SessionClaims(user_id={self.user_id}, is_admin={self.is_admin})"


def _serializer(secret) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret, salt=SESSION_SALT)


def issue_token(claims: SessionClaims, secret) -> str:
    return _serializer(secret).dumps(claims.to_payload())


def verify_token(token, secret, max_age: int = DEFAULT_MAX_AGE):
    """Return the claims in a valid, unexpired token, otherwise None."""
    if not token or not isinstance(token, str):
        return None
    try:
        payload = _serializer(secret).loads(token, max_age=max_age)
    except BadData:
        # covers bad signatures, expiry and undecodable payloads
        return None
    if not isinstance(payload, dict):
        return None
    user_id = payload.get('userId')
    is_admin = payload.get('isAdmin')
    if not isinstance(user_id, str) or not user_id or not isinstance(is_admin, bool):
        logger.warning('Signed session payload has an unexpected shape')
        return None
    return SessionClaims(user_id, payload.get('email'), payload.get('fullName'), is_admin)


def set_session_cookie(response, token: str, max_age: int = DEFAULT_MAX_AGE,
                       secure: bool = False, cookie_name: str = SESSION_COOKIE_NAME):
    response.set_cookie(
        cookie_name,
        token,
        max_age=max_age,
        path='/',
        httponly=True,
        samesite='Lax',
        secure=secure,
    )
    return response


def clear_session_cookie(response, secure: bool = False, cookie_name: str = SESSION_COOKIE_NAME):
    response.delete_cookie(cookie_name, path='/', httponly=True, samesite='Lax', secure=secure)
    return response
