"""
Tests for scripts/create_admin.py, the first-administrator bootstrap tool.
"""
import sys
import os

# Add scripts and src directories to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import create_admin
from core.security import verify_password
from core.storage import ClubStore


def read_store(tmp_path):
    return ClubStore(str(tmp_path / 'club.yaml')).read()


class TestCreateAdmin:
    """Tests for the bootstrap command."""

    def test_creates_admin_and_prints_password_once(self, tmp_path, capsys):
        exit_code = create_admin.main([
            '--full-name', 'Ana Coach',
            '--email', 'Ana@Club.test',
            '--data-dir', str(tmp_path),
        ])
        assert exit_code == 0

        output = capsys.readouterr().out
        password_line = next(line for line in output.splitlines() if line.startswith('Temporary password: '))
        temporary_password = password_line.split(': ', 1)[1]

        players = read_store(tmp_path).players
        assert len(players) == 1
        admin = players[0]
        assert admin.is_admin is True
        assert admin.email == 'ana@club.test'
        assert admin.username == 'anacoach'
        assert admin.position == 'Staff'
        assert verify_password(temporary_password, admin.password_hash)
        assert temporary_password not in (tmp_path / 'club.yaml').read_text()

    def test_explicit_username_and_position(self, tmp_path):
        exit_code = create_admin.main([
            '--full-name', 'Ana Coach', '--email', 'ana@club.test',
            '--username', 'ana', '--position', 'Head Coach',
            '--data-dir', str(tmp_path),
        ])
        assert exit_code == 0
        admin = read_store(tmp_path).players[0]
        assert admin.username == 'ana'
        assert admin.position == 'Head Coach'

    def test_too_short_username_replaced(self, tmp_path):
        exit_code = create_admin.main([
            '--full-name', 'Ana Coach', '--email', 'ana@club.test',
            '--username', 'an', '--data-dir', str(tmp_path),
        ])
        assert exit_code == 0
        assert read_store(tmp_path).players[0].username.startswith('player')

    def test_duplicate_exits_1(self, tmp_path, capsys):
        args = ['--full-name', 'Ana Coach', '--email', 'ana@club.test', '--data-dir', str(tmp_path)]
        assert create_admin.main(args) == 0
        assert create_admin.main(args) == 1
        assert 'already exists' in capsys.readouterr().err
        assert len(read_store(tmp_path).players) == 1

    def test_blank_input_exits_2(self, tmp_path):
        exit_code = create_admin.main(['--full-name', 'Ana Coach', '--email', '  ', '--data-dir', str(tmp_path)])
        assert exit_code == 2

    def test_corrupt_data_file_exits_3(self, tmp_path):
        (tmp_path / 'club.yaml').write_text('players: [unclosed\n')
        exit_code = create_admin.main(['--full-name', 'Ana Coach', '--email', 'ana@club.test',
                                       '--data-dir', str(tmp_path)])
        assert exit_code == 3

    def test_admin_can_log_in(self, tmp_path, capsys):
        from app import create_app
        create_admin.main(['--full-name', 'Ana Coach', '--email', 'ana@club.test', '--data-dir', str(tmp_path)])
        temporary_password = capsys.readouterr().out.split('Temporary password: ')[1].splitlines()[0]

        app = create_app({'TESTING': True, 'DATA_DIR': str(tmp_path), 'SECRET_KEY': 'k'})
        with app.test_client() as client:
            response = client.post('/api/auth/login', json={'identifier': 'ana@club.test',
                                                            'password': temporary_password})
            assert response.status_code == 200
            assert response.get_json()['user']['isAdmin'] is True
            assert client.get('/login').headers['Location'] == '/admin'
