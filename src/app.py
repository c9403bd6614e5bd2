"""
Flask web application for the club attendance manager.
"""
import os
import logging
import re
from functools import wraps
from flask import Blueprint, Flask, current_app, g, jsonify, redirect, render_template, request
from werkzeug.exceptions import HTTPException

from core.errors import ClubError, Unauthenticated, Unauthorized, ValidationError
from core.gate import PUBLIC, classify_route, decide, landing_path
from core.models import choose_username, count_statuses
from core.security import burn_verification, generate_temp_password, hash_password, verify_password
from core.sessions import (
    SESSION_COOKIE_NAME, SessionClaims, clear_session_cookie, issue_token, set_session_cookie, verify_token,
)
from core.storage import ClubStore

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.environ.get('CLUB_DATA_DIR', os.path.join(BASE_DIR, 'data'))
CLUB_FILE_NAME = 'club.yaml'
SESSION_DAYS = int(os.environ.get('CLUB_SESSION_DAYS', '7'))
COOKIE_SECURE = os.environ.get('CLUB_ENV', '').lower() == 'production'
LOG_LEVEL = os.environ.get('CLUB_LOG_LEVEL', 'INFO').upper()

TEMP_PASSWORD_LENGTH = 12
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+$')

bp = Blueprint('club', __name__)


def _get_or_create_secret_key(data_dir: str) -> bytes:
    """Get SECRET_KEY from env, or generate and persist to file."""
    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key.encode()
    key_file = os.path.join(data_dir, '.secret_key')
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return f.read()
    key = os.urandom(24)
    os.makedirs(os.path.dirname(key_file), exist_ok=True)
    with open(key_file, 'wb') as f:
        f.write(key)
    return key


def create_app(test_config: dict = None) -> Flask:
    """Build the application. ``test_config`` overrides the defaults above."""
    app = Flask(__name__)
    app.config.from_mapping(
        DATA_DIR=DATA_DIR,
        SESSION_MAX_AGE=SESSION_DAYS * 24 * 60 * 60,
        CLUB_COOKIE_NAME=SESSION_COOKIE_NAME,
        CLUB_COOKIE_SECURE=COOKIE_SECURE,
        LOG_LEVEL=LOG_LEVEL,
    )
    if test_config:
        app.config.update(test_config)
    if not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = _get_or_create_secret_key(app.config['DATA_DIR'])

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s %(message)s'
    )

    app.extensions['club_store'] = ClubStore(os.path.join(app.config['DATA_DIR'], CLUB_FILE_NAME))
    app.register_blueprint(bp)
    return app


def get_store() -> ClubStore:
    return current_app.extensions['club_store']


def current_claims():
    """Verified session claims for this request, or None."""
    if 'claims' not in g:
        g.claims = verify_token(
            request.cookies.get(current_app.config['CLUB_COOKIE_NAME']),
            current_app.secret_key,
            current_app.config['SESSION_MAX_AGE'],
        )
    return g.claims


def session_required(f):
    """Answer 401 unless the request carries a valid session."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_claims() is None:
            raise Unauthenticated()
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Answer 401 unless the session belongs to an administrator."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        claims = current_claims()
        if claims is None:
            raise Unauthenticated()
        if not claims.is_admin:
            raise Unauthorized()
        return f(*args, **kwargs)
    return decorated_function


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ''


@bp.before_app_request
def guard_pages():
    """Redirect page requests according to the session and the route."""
    if classify_route(request.path) == PUBLIC:
        return None
    decision = decide(request.path, current_claims())
    if not decision.passes:
        return redirect(decision.redirect_to)
    return None


@bp.app_errorhandler(ClubError)
def handle_club_error(e):
    if e.status_code >= 500:
        current_app.logger.error(f'{request.method} {request.path} failed: {e.__cause__ or e}')
    return jsonify({'error': e.message}), e.status_code


@bp.app_errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        if request.path.startswith('/api/'):
            return jsonify({'error': e.name}), e.code
        return e
    current_app.logger.exception(f'Unhandled error on {request.method} {request.path}')
    return jsonify({'error': 'Unexpected error'}), 500


# Pages

@bp.route('/')
def index():
    return redirect(landing_path(current_claims()))


@bp.route('/login')
def login_page():
    return render_template('login.html')


@bp.route('/dashboard')
def dashboard():
    return render_template('dashboard.html', user=current_claims())


@bp.route('/admin')
def admin_page():
    return render_template('admin.html', user=current_claims())


# Authentication

@bp.route('/api/auth/login', methods=['POST'])
def api_login():
    data = _json_body()
    identifier = _text(data, 'identifier')
    password = data.get('password')
    if not identifier or not isinstance(password, str) or not password:
        raise ValidationError('Missing credentials')

    player = get_store().read().player_by_identifier(identifier)
    if player is None:
        authenticated = burn_verification(password)
    else:
        authenticated = verify_password(password, player.password_hash)
    if not authenticated:
        current_app.logger.info(f'Failed login for {identifier}')
        raise Unauthenticated('Invalid credentials')

    token = issue_token(SessionClaims.for_player(player), current_app.secret_key)
    response = jsonify({'user': player.to_public()})
    set_session_cookie(
        response, token,
        max_age=current_app.config['SESSION_MAX_AGE'],
        secure=current_app.config['CLUB_COOKIE_SECURE'],
        cookie_name=current_app.config['CLUB_COOKIE_NAME'],
    )
    current_app.logger.info(f'{player.username} logged in')
    return response


@bp.route('/api/auth/me')
@session_required
def api_me():
    """Current player with their attendance summary and every event."""
    document = get_store().read()
    player = document.player_by_id(current_claims().user_id)
    if player is None:
        raise Unauthenticated('Account no longer exists')

    records = document.attendance_for_player(player.id)
    by_event = {record.event_id: record for record in records}
    events = []
    for event in document.events_by_start_time():
        item = event.to_public()
        record = by_event.get(event.id)
        item['status'] = record.status if record else None
        item['recordedAt'] = record.recorded_at if record else None
        events.append(item)

    return jsonify({
        'user': player.to_public(),
        'attendance': count_statuses(records),
        'events': events,
    })


@bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    response = jsonify({'success': True})
    clear_session_cookie(
        response,
        secure=current_app.config['CLUB_COOKIE_SECURE'],
        cookie_name=current_app.config['CLUB_COOKIE_NAME'],
    )
    return response


# Roster

@bp.route('/api/admin/players', methods=['GET'])
@admin_required
def api_list_players():
    players = [player.to_public() for player in get_store().read().players]
    return jsonify({'players': players})


@bp.route('/api/admin/players', methods=['POST'])
@admin_required
def api_create_player():
    """Create a player and return their one-time temporary password."""
    data = _json_body()
    full_name = _text(data, 'fullName')
    email = _text(data, 'email').lower()
    position = _text(data, 'position')
    if not full_name or not email or not position:
        raise ValidationError('Missing required fields')
    if not EMAIL_RE.match(email):
        raise ValidationError('Invalid email address')

    username = choose_username(full_name, _text(data, 'username'))
    temporary_password = generate_temp_password(TEMP_PASSWORD_LENGTH)
    player = get_store().add_player(
        full_name=full_name,
        email=email,
        username=username,
        password_hash=hash_password(temporary_password),
        position=position,
        is_admin=bool(data.get('isAdmin')),
    )
    return jsonify({'player': player.to_public(), 'temporaryPassword': temporary_password})


@bp.route('/api/admin/players/<player_id>', methods=['DELETE'])
@admin_required
def api_delete_player(player_id):
    get_store().delete_player(player_id)
    return jsonify({'success': True})


# Fixtures

@bp.route('/api/admin/events', methods=['GET'])
@admin_required
def api_list_fixtures():
    events = [event.to_public() for event in get_store().read().events_by_start_time()]
    return jsonify({'events': events})


@bp.route('/api/admin/events', methods=['POST'])
@admin_required
def api_create_event():
    data = _json_body()
    event = get_store().add_event(
        title=data.get('title'),
        category=data.get('category'),
        start_time=data.get('startTime'),
        location=data.get('location'),
        notes=data.get('notes'),
    )
    return jsonify({'event': event.to_public()})


@bp.route('/api/events')
@session_required
def api_events():
    """Every event with its present/absent/late counts, earliest first."""
    document = get_store().read()
    events = []
    for event in document.events_by_start_time():
        item = event.to_public()
        item['attendance'] = count_statuses(document.attendance_for_event(event.id))
        events.append(item)
    return jsonify({'events': events})


# Attendance

@bp.route('/api/admin/attendance', methods=['GET'])
@admin_required
def api_event_attendance():
    event_id = request.args.get('eventId', '').strip()
    if not event_id:
        raise ValidationError('Missing eventId')
    records = get_store().read().attendance_for_event(event_id)
    return jsonify({'attendance': [record.to_public() for record in records]})


@bp.route('/api/admin/attendance', methods=['POST'])
@admin_required
def api_record_attendance():
    data = _json_body()
    event_id = _text(data, 'eventId')
    records = data.get('records')
    if not event_id or not isinstance(records, list) or not records:
        raise ValidationError('Missing attendance data')

    entries = [
        {'player_id': record.get('playerId'), 'status': record.get('status')}
        for record in records if isinstance(record, dict)
    ]
    written = get_store().bulk_record_attendance(event_id, current_claims().user_id, entries)
    return jsonify({'success': True, 'recorded': len(written)})


if __name__ == '__main__':
    create_app().run(debug=True, port=5000)
