"""
Shared pytest fixtures for club attendance manager tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from app import create_app
from core.security import hash_password
from core.storage import ClubStore

ADMIN_PASSWORD = 'coach-pass-123'
PLAYER_PASSWORD = 'striker-pass-123'


@pytest.fixture
def app(tmp_path):
    """Application wired to a temporary data directory."""
    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path),
        'SECRET_KEY': 'test-secret-key',
        'CLUB_COOKIE_SECURE': False,
    })
    return app


@pytest.fixture
def store(app) -> ClubStore:
    return app.extensions['club_store']


@pytest.fixture
def client(app):
    """Create a test client (unauthenticated by default)."""
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin(store):
    return store.add_player(
        full_name='Ana Coach',
        email='ana@club.test',
        username='coach',
        password_hash=hash_password(ADMIN_PASSWORD),
        position='Head Coach',
        is_admin=True,
    )


@pytest.fixture
def player(store):
    return store.add_player(
        full_name='Bruno Striker',
        email='bruno@club.test',
        username='bruno',
        password_hash=hash_password(PLAYER_PASSWORD),
        position='Forward',
    )


def login(client, identifier, password):
    return client.post('/api/auth/login', json={'identifier': identifier, 'password': password})


@pytest.fixture
def admin_client(client, admin):
    """Client holding an administrator session."""
    response = login(client, 'coach', ADMIN_PASSWORD)
    assert response.status_code == 200
    return client


@pytest.fixture
def player_client(client, player):
    """Client holding a regular player session."""
    response = login(client, 'bruno', PLAYER_PASSWORD)
    assert response.status_code == 200
    return client
