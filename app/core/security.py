from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from passlib.hash import argon2

from app.core.config import settings
from app.core.errors import UnauthorizedError


def hash_password(plain: str) -> str:
    return argon2.using(time_cost=2, memory_cost=102400, parallelism=8).hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    # accounts created without a password never match
    if not plain or not hashed:
        return False
    return argon2.verify(plain, hashed)


def _encode(sub: str, secret: str, expires: timedelta) -> str:
    now = datetime.now(tz=timezone.utc)
    payload = {"sub": str(sub), "iat": now, "exp": now + expires}
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALG)


def create_access_token(sub: str) -> str:
    return _encode(sub, settings.JWT_ACCESS_SECRET, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(sub: str) -> str:
    return _encode(sub, settings.JWT_REFRESH_SECRET, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_ACCESS_SECRET, algorithms=[settings.JWT_ALG], options={"verify_aud": False})
    except JWTError:
        raise UnauthorizedError("Unauthorized")


def decode_refresh_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_REFRESH_SECRET, algorithms=[settings.JWT_ALG], options={"verify_aud": False})
    except JWTError:
        raise UnauthorizedError("Unauthorized")
