from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.schemas.auth import ForgotPasswordIn, LoginIn, ResetPasswordIn, TokenOut
from app.schemas.base import MessageOut
from app.services import auth as auth_service
from app.services.mailer import Mailer, get_mailer

router = APIRouter(prefix="/api/auth", tags=["auth"])

SESSION_COOKIE = "refreshToken"


def _cookie_flags() -> dict:
    return {
        "httponly": True,
        "secure": settings.COOKIE_SECURE,
        "samesite": "none" if settings.COOKIE_SECURE else "lax",
        "path": "/",
    }


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=SESSION_COOKIE, **_cookie_flags())


@router.post("/login", response_model=TokenOut, status_code=status.HTTP_200_OK)
def login(payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    access, refresh = auth_service.login(db, payload.email, payload.password)

    response.set_cookie(
        key=SESSION_COOKIE,
        value=refresh,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **_cookie_flags(),
    )
    return {"accessToken": access}


@router.post("/refresh", response_model=TokenOut, status_code=status.HTTP_200_OK)
def refresh(request: Request, db: Session = Depends(get_db)):
    access = auth_service.refresh(db, request.cookies.get(SESSION_COOKIE))
    return {"accessToken": access}


@router.post("/logout", response_model=MessageOut, status_code=status.HTTP_200_OK)
def logout(response: Response):
    clear_session_cookie(response)
    return {"message": "Cookie cleared"}


@router.post("/forgot-password", response_model=MessageOut)
def forgot_password(
    payload: ForgotPasswordIn,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    auth_service.request_password_reset(db, mailer, payload.email)
    return {"message": "If the account exists, a reset link has been sent"}


@router.post("/reset-password/{token}", response_model=MessageOut)
def reset_password(token: str, payload: ResetPasswordIn, db: Session = Depends(get_db)):
    auth_service.reset_password(db, token, payload.password)
    return {"message": "Password updated"}
