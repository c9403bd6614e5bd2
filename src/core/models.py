import random
import re
from datetime import datetime, timezone

EVENT_CATEGORIES = ('training', 'match', 'tournament', 'event')
ATTENDANCE_STATUSES = ('present', 'absent', 'late')
USERNAME_MIN_LENGTH = 3


def utc_now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC."""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def choose_username(full_name: str, desired: str = '') -> str:
    """Use the desired username, else one derived from the full name.

    Anything shorter than USERNAME_MIN_LENGTH is replaced by a generated
    ``player<n>`` name.
    """
    username = (desired or '').strip() or re.sub(r'[^a-z0-9]', '', full_name.lower())
    if len(username) < USERNAME_MIN_LENGTH:
        username = f'player{random.randint(0, 9999)}'
    return username


class Player:
    def __init__(self, id, full_name, email, username, password_hash, position,
                 is_admin=False, created_at=None):
        self.id = id
        self.full_name = full_name
        self.email = email
        self.username = username
        self.password_hash = password_hash
        self.position = position
        self.is_admin = bool(is_admin)
        self.created_at = created_at or utc_now()

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=data['id'],
            full_name=data['full_name'],
            email=data['email'],
            username=data['username'],
            password_hash=data['password_hash'],
            position=data.get('position', ''),
            is_admin=data.get('is_admin', False),
            created_at=data.get('created_at'),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'full_name': self.full_name,
            'email': self.email,
            'username': self.username,
            'password_hash': self.password_hash,
            'position': self.position,
            'is_admin': self.is_admin,
            'created_at': self.created_at,
        }

    def to_public(self) -> dict:
        """API representation; the password hash is never included."""
        return {
            'id': self.id,
            'fullName': self.full_name,
            'email': self.email,
            'username': self.username,
            'position': self.position,
            'isAdmin': self.is_admin,
            'createdAt': self.created_at,
        }

    def __repr__(self):
        return f"Player(id={self.id}, username={self.username}, is_admin={self.is_admin})"


class Event:
    def __init__(self, id, title, category, start_time, location, notes=None, created_at=None):
        self.id = id
        self.title = title
        self.category = category
        self.start_time = start_time
        self.location = location
        self.notes = notes
        self.created_at = created_at or utc_now()

    @property
    def starts_at(self) -> datetime:
        return parse_timestamp(self.start_time)

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=data['id'],
            title=data['title'],
            category=data['category'],
            start_time=data['start_time'],
            location=data.get('location', ''),
            notes=data.get('notes'),
            created_at=data.get('created_at'),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'category': self.category,
            'start_time': self.start_time,
            'location': self.location,
            'notes': self.notes,
            'created_at': self.created_at,
        }

    def to_public(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'category': self.category,
            'startTime': self.start_time,
            'location': self.location,
            'notes': self.notes,
            'createdAt': self.created_at,
        }

    def __repr__(self):
        return f"Event(id={self.id}, title={self.title}, category={self.category}, start_time={self.start_time})"


class AttendanceRecord:
    def __init__(self, id, player_id, event_id, status, recorded_by, recorded_at=None):
        self.id = id
        self.player_id = player_id
        self.event_id = event_id
        self.status = status
        self.recorded_by = recorded_by
        self.recorded_at = recorded_at or utc_now()

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=data['id'],
            player_id=data['player_id'],
            event_id=data['event_id'],
            status=data['status'],
            recorded_by=data.get('recorded_by'),
            recorded_at=data.get('recorded_at'),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'player_id': self.player_id,
            'event_id': self.event_id,
            'status': self.status,
            'recorded_by': self.recorded_by,
            'recorded_at': self.recorded_at,
        }

    def to_public(self) -> dict:
        return {
            'id': self.id,
            'playerId': self.player_id,
            'eventId': self.event_id,
            'status': self.status,
            'recordedBy': self.recorded_by,
            'recordedAt': self.recorded_at,
        }

    def __repr__(self):
        return f"AttendanceRecord(player_id={self.player_id}, event_id={self.event_id}, status={self.status})"


def count_statuses(records) -> dict:
    counts = {status: 0 for status in ATTENDANCE_STATUSES}
    for record in records:
        if record.status in counts:
            counts[record.status] += 1
    return counts


class ClubDocument:
    """In-memory view of the persisted club data."""

    def __init__(self, players=None, events=None, attendance=None):
        self.players = players if players else []
        self.events = events if events else []
        self.attendance = attendance if attendance else []

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            players=[Player.from_dict(p) for p in data.get('players') or []],
            events=[Event.from_dict(e) for e in data.get('events') or []],
            attendance=[AttendanceRecord.from_dict(a) for a in data.get('attendance') or []],
        )

    def to_dict(self) -> dict:
        return {
            'players': [p.to_dict() for p in self.players],
            'events': [e.to_dict() for e in self.events],
            'attendance': [a.to_dict() for a in self.attendance],
        }

    def player_by_id(self, player_id):
        return next((p for p in self.players if p.id == player_id), None)

    def player_by_identifier(self, identifier: str):
        """Find a player by email or username, ignoring case."""
        identifier = identifier.strip().lower()
        for player in self.players:
            if player.email.lower() == identifier or player.username.lower() == identifier:
                return player
        return None

    def event_by_id(self, event_id):
        return next((e for e in self.events if e.id == event_id), None)

    def attendance_for_event(self, event_id) -> list:
        return [a for a in self.attendance if a.event_id == event_id]

    def attendance_for_player(self, player_id) -> list:
        return [a for a in self.attendance if a.player_id == player_id]

    def events_by_start_time(self) -> list:
        return sorted(self.events, key=lambda e: e.starts_at)
