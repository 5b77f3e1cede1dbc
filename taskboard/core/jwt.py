# taskboard/core/jwt.py

from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from taskboard.core.config import settings


def create_access_token(user_id: UUID | str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": str(user_id),
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if "sub" not in payload:
        return None
    return payload


def user_id_from_token(token: str | None) -> Optional[UUID]:
    """토큰이 없거나 깨졌으면 None."""
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    try:
        return UUID(str(payload["sub"]))
    except ValueError:
        return None
