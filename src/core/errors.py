"""
Error types shared by the storage, session and web layers.

Each error carries the HTTP status the API answers with and a message that is
safe to show to the client.
"""


class ClubError(Exception):
    status_code = 500
    default_message = 'Unexpected error'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ClubError):
    status_code = 401
    default_message = 'Unauthorized'


class Unauthorized(ClubError):
    """Valid session, wrong role. Answered with 401 like a missing session."""
    status_code = 401
    default_message = 'Unauthorized'


class ValidationError(ClubError):
    status_code = 400
    default_message = 'Invalid input'


class NotFound(ClubError):
    status_code = 404
    default_message = 'Not found'


class Conflict(ClubError):
    status_code = 409
    default_message = 'Conflict'


class DuplicateUser(Conflict):
    default_message = 'A player with that email or username already exists'


class ForbiddenOperation(ClubError):
    status_code = 400
    default_message = 'Operation not allowed'


class StorageUnavailable(ClubError):
    # The message stays generic; the cause goes to the log only.
    status_code = 500
    default_message = 'Unexpected error'
