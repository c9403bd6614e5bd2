#!/usr/bin/env python3
"""
Administrator Bootstrap Tool

Creates an administrator account directly in the club data file, so the
first admin can log in and provision everyone else through the web app.
The temporary password is printed once and is not stored anywhere.

Usage:
    python scripts/create_admin.py --full-name "Ana Coach" --email ana@club.test
    python scripts/create_admin.py --full-name "Ana Coach" --email ana@club.test --username ana --data-dir /srv/club

Exit codes:
    0: Success
    1: A player with that email or username already exists
    2: Invalid input
    3: Data file could not be read or written
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))

from app import CLUB_FILE_NAME, DATA_DIR, TEMP_PASSWORD_LENGTH
from core.errors import DuplicateUser, StorageUnavailable, ValidationError
from core.models import choose_username
from core.security import generate_temp_password, hash_password
from core.storage import ClubStore


def create_admin(data_dir: str, full_name: str, email: str, username: str = None,
                 position: str = 'Staff'):
    """Create the admin. Returns (player, temporary_password)."""
    store = ClubStore(os.path.join(data_dir, CLUB_FILE_NAME))
    temporary_password = generate_temp_password(TEMP_PASSWORD_LENGTH)
    player = store.add_player(
        full_name=full_name,
        email=email,
        username=choose_username(full_name, username),
        password_hash=hash_password(temporary_password),
        position=position,
        is_admin=True,
    )
    return player, temporary_password


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Create an administrator account for the club attendance manager'
    )
    parser.add_argument(
        '--full-name',
        required=True,
        help='Display name of the administrator'
    )
    parser.add_argument(
        '--email',
        required=True,
        help='Login email (stored lower-case)'
    )
    parser.add_argument(
        '--username',
        help='Login username (default: derived from the full name)'
    )
    parser.add_argument(
        '--position',
        default='Staff',
        help='Roster position shown for the account (default: Staff)'
    )
    parser.add_argument(
        '--data-dir',
        default=DATA_DIR,
        help='Directory holding the club data file (default: CLUB_DATA_DIR or ./data)'
    )

    args = parser.parse_args(argv)

    try:
        player, temporary_password = create_admin(
            args.data_dir, args.full_name, args.email, args.username, args.position
        )
    except DuplicateUser:
        print("Error: a player with that email or username already exists.", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2
    except StorageUnavailable:
        print(f"Error: could not update the data file in {args.data_dir}", file=sys.stderr)
        return 3

    print(f"Administrator created: {player.username} ({player.email})")
    print(f"Temporary password: {temporary_password}")
    print("This password is shown only once.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
