"""Session provider: resolves the current actor from the Authorization header.

Tokens are JWTs signed with the shared ``SECRET_KEY``; the actor id is the
``sub`` claim. A missing or invalid token means "no actor". Reads treat that
as no data available, and mutations answer 401 through ``require_actor``.
"""

from typing import Optional

from fastapi import Header, HTTPException
from jose import JWTError, jwt

from config import get_settings
from utils.logging import get_logger, set_request_context
from utils.sanitize import sanitize_user_id

logger = get_logger(__name__)


async def get_current_actor_id(
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Actor id from a ``Bearer <jwt>`` header, or None when there is none."""
    if not authorization:
        return None

    settings = get_settings()
    secret_key = settings.get_secret_key()
    if not secret_key:
        logger.error("SECRET_KEY not configured - cannot validate session tokens")
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Invalid authorization header format")
        return None

    try:
        payload = jwt.decode(
            parts[1],
            secret_key,
            algorithms=[settings.algorithm],
            options={"require_sub": True, "verify_exp": True, "verify_iat": True},
        )
    except JWTError:
        # Never log the token or the decode error
        logger.warning("JWT validation failed")
        return None

    actor_id = payload.get("sub")
    if not actor_id:
        logger.warning("JWT token missing 'sub' claim")
        return None

    set_request_context(user_id=sanitize_user_id(str(actor_id)))
    return str(actor_id)


async def require_actor(
    authorization: Optional[str] = Header(None),
) -> str:
    """Like ``get_current_actor_id`` but answers 401 when there is no actor."""
    actor_id = await get_current_actor_id(authorization)
    if actor_id is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor_id
