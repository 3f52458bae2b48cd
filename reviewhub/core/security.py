# reviewhub/core/security.py
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from reviewhub.core.config import Settings


def create_session_token(
    settings: Settings,
    user_id: str,
    name: str | None = None,
    email: str | None = None,
    image: str | None = None,
    access_token: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Sign the primary session payload.

    `sub` is the canonical user id; the remaining claims mirror the profile
    the session exposes to the rest of the app.
    """
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.SESSION_MAX_AGE)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {
        "sub": str(user_id),
        "name": name,
        "email": email,
        "image": image,
        "access_token": access_token,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.SESSION_ALGORITHM)


def decode_session_token(settings: Settings, token: str) -> dict | None:
    """Payload of a valid, unexpired token; None otherwise."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.SESSION_ALGORITHM])
    except JWTError:
        return None
