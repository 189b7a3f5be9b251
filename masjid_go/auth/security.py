from datetime import datetime, timedelta, timezone

from jose import jwt

from masjid_go.config import settings


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Issue an access token in the format the auth subsystem uses."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"exp": expire, "sub": subject, "type": "access"}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
