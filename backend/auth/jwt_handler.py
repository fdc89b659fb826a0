from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config


def create_access_token(subject: str | int, expires_minutes: int | None = None) -> str:
    """Issue a bearer token whose ``sub`` is the user id as a string."""
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {"sub": str(subject), "iat": issued_at, "exp": expire}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
