"""
Route guard decisions for page requests.

``decide`` is a pure function of the request path and the verified session
claims (or None); the web layer turns its answer into a pass-through or a
redirect.
"""
from urllib.parse import quote

ADMIN_PATH = '/admin'
PLAYER_PATH = '/dashboard'
LOGIN_PATH = '/login'
RETURN_TARGET_PARAM = 'redirectedFrom'

PUBLIC_PREFIXES = ('/api', '/static')
PUBLIC_PATHS = ('/favicon.ico',)

PUBLIC = 'public'
LOGIN = 'login'
ADMIN_AREA = 'admin'
PLAYER_AREA = 'player'
OTHER = 'other'


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + '/')


def classify_route(path: str) -> str:
    if path in PUBLIC_PATHS or any(_under(path, p) for p in PUBLIC_PREFIXES):
        return PUBLIC
    if path == LOGIN_PATH:
        return LOGIN
    if _under(path, ADMIN_PATH):
        return ADMIN_AREA
    if _under(path, PLAYER_PATH):
        return PLAYER_AREA
    return OTHER


def landing_path(claims) -> str:
    return ADMIN_PATH if claims.is_admin else PLAYER_PATH


class GateDecision:
    def __init__(self, redirect_to=None):
        self.redirect_to = redirect_to

    @property
    def passes(self) -> bool:
        return self.redirect_to is None

    def __eq__(self, other):
        return isinstance(other, GateDecision) and self.redirect_to == other.redirect_to

    def __repr__(self):
        return 'GateDecision(pass)' if self.passes else f'GateDecision(redirect_to={self.redirect_to})'


PASS = GateDecision()


def redirect(path: str) -> GateDecision:
    return GateDecision(redirect_to=path)


def decide(path: str, claims) -> GateDecision:
    route = classify_route(path)

    if route == PUBLIC:
        return PASS

    if route == LOGIN:
        return redirect(landing_path(claims)) if claims else PASS

    if claims is None:
        return redirect(f'{LOGIN_PATH}?{RETURN_TARGET_PARAM}={quote(path, safe="/")}')

    if route == ADMIN_AREA and not claims.is_admin:
        return redirect(PLAYER_PATH)

    if route == PLAYER_AREA and claims.is_admin:
        return redirect(ADMIN_PATH)

    return PASS
