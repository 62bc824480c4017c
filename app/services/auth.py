# app/services/auth.py
import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AuthError, ForbiddenError, UnauthorizedError, ValidationError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from app.core.tokens import generate_token, hash_token
from app.models.user import User
from app.services.accounts import find_by_email
from app.services.mailer import reset_password_email
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


def login(db: Session, email: str, password: str) -> Tuple[str, str]:
    """Returns (access, refresh). Only verified accounts may log in."""
    user = find_by_email(db, email)
    if not user or not verify_password(password, user.password):
        raise UnauthorizedError("Invalid credentials")
    if not user.is_verified:
        raise ForbiddenError("Please verify your email")

    uid = str(user.id)
    return create_access_token(sub=uid), create_refresh_token(sub=uid)


def refresh(db: Session, token: Optional[str]) -> str:
    if not token:
        raise UnauthorizedError("Unauthorized")
    payload = decode_refresh_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Unauthorized")
    if not db.get(User, user_id):
        raise UnauthorizedError("Unauthorized")
    return create_access_token(sub=str(user_id))


def request_password_reset(db: Session, mailer, email: str) -> Optional[User]:
    """Store a hashed reset token for the account and email the plain one.

    Unknown emails are not reported to the caller.
    """
    user = find_by_email(db, email)
    if not user:
        return None

    plain, hashed = generate_token()
    user.reset_password_token = hashed
    user.reset_password_token_expires_at = utcnow() + timedelta(minutes=settings.RESET_PASSWORD_TOKEN_EXPIRE_MINUTES)
    db.commit()

    message = reset_password_email(user.username, plain)
    if not mailer.send(to=user.email, subject=message["subject"], body=message["body"]):
        logger.warning("reset email for user %s was not delivered", user.id)
    return user


def reset_password(db: Session, token: str, password: str) -> User:
    if not password:
        raise ValidationError("Password is required")

    user = db.scalars(select(User).where(User.reset_password_token == hash_token(token))).first()
    if (
        not user
        or not user.reset_password_token_expires_at
        or user.reset_password_token_expires_at < utcnow()
    ):
        raise AuthError("Invalid or expired token")

    user.password = hash_password(password)
    user.reset_password_token = None
    user.reset_password_token_expires_at = None
    db.commit()
    logger.info("password reset for user %s", user.id)
    return user
