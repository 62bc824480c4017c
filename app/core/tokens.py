# app/core/tokens.py
import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import jwt, JWTError, ExpiredSignatureError

from app.core.config import settings


def hash_token(plain: str) -> str:
    """One-way digest of a verification/reset token; only this form is stored."""
    return hashlib.sha256(plain.encode("utf-8")).hexdigest()


def generate_token() -> Tuple[str, str]:
    """Returns (plain, hashed). The plain value goes to the user and is never persisted."""
    plain = secrets.token_hex(10)
    return plain, hash_token(plain)


def sign_short_lived_token(payload: dict, secret: str, ttl: timedelta) -> str:
    to_encode = dict(payload)
    to_encode["exp"] = datetime.now(tz=timezone.utc) + ttl
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALG)


@dataclass
class TokenCheck:
    claims: Optional[dict] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


def verify_short_lived_token(token: Optional[str], secret: str) -> TokenCheck:
    if not token:
        return TokenCheck(reason="missing")
    try:
        claims = jwt.decode(token, secret, algorithms=[settings.JWT_ALG])
    except ExpiredSignatureError:
        return TokenCheck(reason="expired")
    except JWTError:
        return TokenCheck(reason="invalid")
    return TokenCheck(claims=claims)
