from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.security import decode_access_token
from app.models.user import User

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer access token to a user.

    A missing or non-bearer header is 403 so the client does not retry;
    an invalid or expired token is 401 so it can refresh and retry.
    """
    if not creds or (creds.scheme or "").lower() != "bearer":
        raise ForbiddenError("Forbidden")

    payload = decode_access_token(creds.credentials)
    sub = payload.get("sub")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise UnauthorizedError("Unauthorized")

    user = db.get(User, user_id)
    if not user:
        raise ForbiddenError("Forbidden. Please contact support")
    return user
