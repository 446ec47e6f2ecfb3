"""
LeftoverSaver — Security helper (JWT decode only, shared secret)

Tokens are minted by the external identity provider; the ``sub`` claim is the
stable account id that owns stores, offers and bookings.
"""
from typing import Any

from fastapi import HTTPException, Request, status
from jose import jwt

from leftoversaver.core.config import get_settings

settings = get_settings()


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT. Raises JWTError on failure."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def get_current_user_id(request: Request) -> str:
    """FastAPI dependency: uid of the caller, set by JWTAuthMiddleware."""
    claims = getattr(request.state, "user", None) or {}
    uid = claims.get("sub")
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return str(uid)
