"""
Request authorization: turns the Authorization header into a user id.

Routes that need an identity declare `user_id: int = Depends(get_current_user_id)`
and pass it on to the note store; nothing downstream reads the token.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, Request

from notes_backend.api.errors import InvalidToken, Unauthorized
from notes_backend.api.identity import IdentityService

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def get_identity(request: Request) -> IdentityService:
    """The IdentityService built by the app factory."""
    return request.app.state.identity


# PUBLIC_INTERFACE
def parse_bearer(authorization: Optional[str]) -> str:
    """
    Returns the token from a `Bearer <token>` header value.

    Raises Unauthorized when the header is missing or is not exactly a
    scheme and a token separated by one space.
    """
    if not authorization:
        raise Unauthorized("empty authorization header")
    parts = authorization.split(" ")
    if len(parts) != 2 or not parts[1]:
        raise Unauthorized("invalid authorization header")
    scheme, token = parts
    if scheme.lower() != BEARER_SCHEME:
        raise Unauthorized("invalid authorization header")
    return token


# PUBLIC_INTERFACE
def get_current_user_id(
    authorization: Optional[str] = Header(default=None),
    identity: IdentityService = Depends(get_identity),
) -> int:
    """Validates the bearer token and returns the caller's user id."""
    token = parse_bearer(authorization)
    try:
        user_id = identity.verify_token(token)
    except InvalidToken as e:
        logger.warning("rejected token: %s", e.message)
        raise
    logger.debug("user identity found user_id=%s", user_id)
    return user_id
