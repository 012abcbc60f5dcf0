"""
Bearer token handling.

Tokens are issued by the authentication service; this module only needs
to verify them and read the user id. ``create_access_token`` exists for
local development and tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import Config

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """The bearer token is missing, malformed, expired or has no user id."""


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None, **claims: Any) -> str:
    """
    Create a signed token for ``user_id``.

    Args:
        user_id: Stored in the ``sub`` claim.
        expires_delta: Lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
        **claims: Extra claims (e.g. email).
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=Config.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {**claims, "sub": user_id, "iat": now, "exp": expire}
    return jwt.encode(payload, Config.JWT_SECRET, algorithm=Config.JWT_ALGORITHM)


def decode_user_id(token: str) -> str:
    """
    Verify a token and return its user id.

    Raises:
        AuthenticationError: If the token is invalid or expired.
    """
    try:
        payload = jwt.decode(token, Config.JWT_SECRET, algorithms=[Config.JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired.") from e
    except JWTError as e:
        logger.debug("Rejected token: %s", e)
        raise AuthenticationError("Invalid token.") from e

    # Older tokens carry the user id in "id"
    user_id = payload.get("sub") or payload.get("id")
    if not user_id:
        raise AuthenticationError("Invalid token.")
    return str(user_id)
