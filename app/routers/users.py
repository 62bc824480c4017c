from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.db import get_db
from app.models.user import User
from app.routers.auth import clear_session_cookie
from app.schemas.base import MessageOut
from app.schemas.user import RegisterIn, UserOut
from app.services import accounts
from app.services.mailer import Mailer, get_mailer
from app.services.storage import BlobStorage, get_storage, save_uploads

router = APIRouter(prefix="/api/users", tags=["users"])

PROFILE_FOLDER = "profiles"


def to_user_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        username=u.username,
        email=u.email,
        new_email=u.new_email,
        phone_number=u.phone_number,
        profile_url=u.profile_url,
        bio=u.profile.bio if u.profile else None,
    )


@router.get("", response_model=UserOut)
def get_me(me: User = Depends(get_current_user)):
    return to_user_out(me)


@router.post("/register", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterIn,
    response: Response,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    user, plain, resend_token = accounts.register(db, payload.username, payload.email, payload.password)

    # don't wait; the user can ask for a resend
    background.add_task(accounts.send_verification_email, mailer, user.email, user.username, plain)

    response.set_cookie(
        key=accounts.RESEND_COOKIE,
        value=resend_token,
        httponly=False,  # the client reads it to show the address
        secure=settings.COOKIE_SECURE,
        samesite="none" if settings.COOKIE_SECURE else "lax",
        max_age=settings.RESEND_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )
    return {"message": "Registered successfully"}


@router.post("/resend/email", response_model=MessageOut)
def resend_email(
    request: Request,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    user, plain = accounts.reissue_verification(db, request.cookies.get(accounts.RESEND_COOKIE))
    background.add_task(accounts.send_verification_email, mailer, user.email, user.username, plain)
    return {"message": "Email sent"}


@router.get("/verify/{token}", response_model=MessageOut)
def verify_email(token: str, db: Session = Depends(get_db)):
    accounts.confirm_email(db, token)
    return {"message": "Email verified"}


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    password: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone_number: Optional[str] = Form(None, alias="phoneNumber"),
    new_password: Optional[str] = Form(None, alias="newPassword"),
    bio: Optional[str] = Form(None),
    profile: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    mailer: Mailer = Depends(get_mailer),
    me: User = Depends(get_current_user),
):
    uploads = save_uploads(storage, [profile] if profile else None, PROFILE_FOLDER)
    user = accounts.update_account(
        db,
        storage,
        mailer,
        user_id=user_id,
        current=me,
        password=password,
        username=username,
        email=email,
        phone_number=phone_number,
        new_password=new_password,
        bio=bio,
        profile_image=uploads[0] if uploads else None,
    )
    return to_user_out(user)


@router.delete("/{user_id}", response_model=MessageOut)
def delete_user(
    user_id: str,
    response: Response,
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    accounts.delete_account(db, storage, user_id, me)
    clear_session_cookie(response)
    return {"message": "Account deactivated"}
