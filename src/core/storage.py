"""
Flat-file persistence for players, events and attendance.

The whole club lives in one YAML document. Writers take an exclusive file
lock and replace the file atomically, so readers never need the lock and
never see a half-written document.
"""
import logging
import os
import tempfile
import threading
import uuid
from contextlib import contextmanager
from filelock import FileLock, Timeout
import yaml

from core.errors import DuplicateUser, ForbiddenOperation, NotFound, StorageUnavailable, ValidationError
from core.models import (
    ATTENDANCE_STATUSES, EVENT_CATEGORIES, AttendanceRecord, ClubDocument, Event, Player,
    format_timestamp, parse_timestamp, utc_now,
)

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 10


def _new_id() -> str:
    return str(uuid.uuid4())


def _require(**fields):
    if any(not (isinstance(value, str) and value.strip()) for value in fields.values()):
        raise ValidationError('Missing required fields')


class ClubStore:
    def __init__(self, path: str, lock_timeout: float = LOCK_TIMEOUT_SECONDS):
        self.path = path
        self.lock_timeout = lock_timeout
        self._thread_lock = threading.Lock()
        self._lock = FileLock(f'{path}.lock', timeout=lock_timeout)

    def read(self) -> ClubDocument:
        """Load the current document.

        A missing file is a club with no data yet. A file that exists but
        cannot be read or parsed raises StorageUnavailable.
        """
        if not os.path.exists(self.path):
            return ClubDocument()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f'Failed to read {self.path}: {e}')
            raise StorageUnavailable() from e
        if data is None:
            return ClubDocument()
        if not isinstance(data, dict):
            logger.error(f'{self.path} does not contain a mapping')
            raise StorageUnavailable()
        try:
            return ClubDocument.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            logger.error(f'Malformed record in {self.path}: {e}')
            raise StorageUnavailable() from e

    def _write(self, document: ClubDocument):
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.club-', suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                yaml.safe_dump(document.to_dict(), f, default_flow_style=False, sort_keys=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f'Failed to write {self.path}: {e}')
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageUnavailable() from e

    @contextmanager
    def _write_lock(self):
        """One writer at a time, across threads and processes."""
        if not self._thread_lock.acquire(timeout=self.lock_timeout):
            logger.error(f'Timed out waiting for the write lock on {self.path}')
            raise StorageUnavailable()
        try:
            try:
                self._lock.acquire()
            except Timeout as e:
                logger.error(f'Timed out waiting for {self._lock.lock_file}')
                raise StorageUnavailable() from e
            try:
                yield
            finally:
                self._lock.release()
        finally:
            self._thread_lock.release()

    def add_player(self, full_name: str, email: str, username: str, password_hash: str,
                   position: str, is_admin: bool = False) -> Player:
        _require(full_name=full_name, email=email, username=username,
                 password_hash=password_hash, position=position)
        email = email.strip().lower()
        username = username.strip()
        with self._write_lock():
            document = self.read()
            for existing in document.players:
                if existing.email.lower() == email or existing.username.lower() == username.lower():
                    raise DuplicateUser()
            player = Player(
                id=_new_id(),
                full_name=full_name.strip(),
                email=email,
                username=username,
                password_hash=password_hash,
                position=position.strip(),
                is_admin=is_admin,
            )
            document.players.append(player)
            self._write(document)
        logger.info(f'Added player {player.username} ({player.id})')
        return player

    def delete_player(self, player_id: str) -> Player:
        with self._write_lock():
            document = self.read()
            player = document.player_by_id(player_id)
            if player is None:
                raise NotFound('Player not found')
            if player.is_admin:
                raise ForbiddenOperation('Cannot remove administrator accounts')
            document.players = [p for p in document.players if p.id != player_id]
            self._write(document)
        logger.info(f'Deleted player {player.username} ({player.id})')
        return player

    def add_event(self, title: str, category: str, start_time: str, location: str,
                  notes: str = None) -> Event:
        _require(title=title, category=category, start_time=start_time, location=location)
        if category not in EVENT_CATEGORIES:
            raise ValidationError('Invalid category')
        try:
            start_time = format_timestamp(parse_timestamp(start_time.strip()))
        except (ValueError, OverflowError):
            raise ValidationError('Invalid start time')
        event = Event(
            id=_new_id(),
            title=title.strip(),
            category=category,
            start_time=start_time,
            location=location.strip(),
            notes=(notes.strip() or None) if isinstance(notes, str) else None,
        )
        with self._write_lock():
            document = self.read()
            document.events.append(event)
            self._write(document)
        logger.info(f'Added {event.category} "{event.title}" at {event.start_time}')
        return event

    def bulk_record_attendance(self, event_id: str, recorded_by: str, records: list) -> list:
        """Insert or overwrite one attendance record per (player, event).

        ``records`` is a list of ``{'player_id': ..., 'status': ...}`` mappings.
        Entries naming an unknown player or an invalid status are dropped; a
        later entry for the same player wins. The batch is written in a single
        replace, so readers see all of it or none of it.
        """
        with self._write_lock():
            document = self.read()
            if document.event_by_id(event_id) is None:
                raise NotFound('Event not found')
            player_ids = {p.id for p in document.players}
            statuses = {}
            for entry in records or []:
                if not isinstance(entry, dict):
                    continue
                player_id = entry.get('player_id')
                status = entry.get('status')
                if isinstance(player_id, str) and player_id in player_ids and status in ATTENDANCE_STATUSES:
                    statuses[player_id] = status
            if not statuses:
                raise ValidationError('No valid attendance records provided')

            recorded_at = utc_now()
            existing = {a.player_id: a for a in document.attendance if a.event_id == event_id}
            written = []
            for player_id, status in statuses.items():
                record = existing.get(player_id)
                if record is None:
                    record = AttendanceRecord(
                        id=_new_id(),
                        player_id=player_id,
                        event_id=event_id,
                        status=status,
                        recorded_by=recorded_by,
                        recorded_at=recorded_at,
                    )
                    document.attendance.append(record)
                else:
                    record.status = status
                    record.recorded_by = recorded_by
                    record.recorded_at = recorded_at
                written.append(record)
            self._write(document)
        logger.info(f'Recorded {len(written)} attendance entries for event {event_id}')
        return written
