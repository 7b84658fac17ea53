"""
Identity & credentials: registration, login and bearer tokens.

Passwords are stored as a salted one-way digest. Login recomputes the
digest and looks up the (username, digest) pair, so the stored value
must be deterministic for a given salt.

Tokens are HMAC-signed JWTs carrying the user id, issued-at and expiry.
They are not persisted; validity is the signature plus the expiry.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from notes_backend.api.errors import (
    InvalidCredentials,
    InvalidInput,
    InvalidToken,
    StorageError,
    TokenExpired,
    UsernameTaken,
)
from notes_database.models import User

logger = logging.getLogger(__name__)

# The hex_sha256 handler is unsalted; the fixed salt is prepended to the password.
pwd_context = CryptContext(schemes=["hex_sha256"])

USER_ID_CLAIM = "user_id"


# PUBLIC_INTERFACE
class IdentityService:
    """
    Registers users, checks their credentials and issues/verifies tokens.

    The signing key and password salt are injected here so that no module
    holds them as globals.
    """

    def __init__(
        self,
        secret_key: str,
        password_salt: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(hours=12),
    ):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        if not password_salt:
            raise ValueError("password_salt must not be empty")
        self._secret_key = secret_key
        self._salt = password_salt
        self.algorithm = algorithm
        self.token_ttl = token_ttl

    def hash_password(self, password: str) -> str:
        """One-way digest of salt + password."""
        return pwd_context.hash(self._salt + password)

    # PUBLIC_INTERFACE
    def register(self, db: Session, username: str, password: str) -> int:
        """
        Stores a new user and returns its id.

        Raises InvalidInput for an empty username or password and
        UsernameTaken when the unique constraint on username fires.
        """
        if not username or not password:
            raise InvalidInput("invalid username or password")

        user = User(username=username, password_hash=self.hash_password(password))
        try:
            db.add(user)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("registration rejected, username taken: %s", username)
            raise UsernameTaken()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("users.create", e) from e

        logger.info("user registered id=%s", user.id)
        return user.id

    # PUBLIC_INTERFACE
    def authenticate(self, db: Session, username: str, password: str) -> int:
        """
        Returns the id of the user matching the credentials.

        Unknown username and wrong password both raise InvalidCredentials.
        """
        stmt = select(User.id).where(
            User.username == username,
            User.password_hash == self.hash_password(password or ""),
        )
        try:
            user_id = db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("users.get", e) from e
        if user_id is None:
            raise InvalidCredentials()
        return user_id

    # PUBLIC_INTERFACE
    def issue_token(self, user_id: int, now: Optional[datetime] = None) -> str:
        """Signs {user_id, iat, exp} with the server key."""
        issued = now or datetime.now(timezone.utc)
        claims = {
            USER_ID_CLAIM: user_id,
            "iat": int(issued.timestamp()),
            "exp": int((issued + self.token_ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    # PUBLIC_INTERFACE
    def verify_token(self, token: str) -> int:
        """
        Returns the user id carried by a valid token.

        Raises TokenExpired past the expiry, InvalidToken for a bad
        signature, an unexpected algorithm or a malformed token.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_iat": True},
            )
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise InvalidToken()

        user_id = claims.get(USER_ID_CLAIM)
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidToken("invalid token claims")
        return user_id

    # PUBLIC_INTERFACE
    def login(self, db: Session, username: str, password: str) -> str:
        """Authenticates and issues a token for the matching user."""
        user_id = self.authenticate(db, username, password)
        logger.info("user logged in id=%s", user_id)
        return self.issue_token(user_id)
