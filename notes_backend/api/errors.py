"""
Error kinds raised by the identity and note components.

Each kind carries the HTTP status it is reported with; the app's
exception handler turns any NotesError into the JSON error envelope.
"""
from starlette import status


class NotesError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "internal error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(NotesError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid input"


class UsernameTaken(NotesError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "username is already taken"


class Unauthorized(NotesError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "unauthorized"


class InvalidToken(Unauthorized):
    default_message = "invalid token"


class TokenExpired(InvalidToken):
    default_message = "token has expired"


class InvalidCredentials(Unauthorized):
    default_message = "invalid username or password"


class AccessDenied(NotesError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "access denied"


class NotFound(NotesError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class StorageError(NotesError):
    """A persistence failure, prefixed with the operation that hit it."""

    def __init__(self, op: str, cause: Exception):
        self.op = op
        self.cause = cause
        super().__init__(f"{op}: storage failure")
