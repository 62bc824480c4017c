# app/services/accounts.py
import logging
from datetime import timedelta
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    DuplicateEmailError,
    EmailDeliveryError,
    AuthError,
    NotFoundError,
    ResendUnauthorizedError,
    ValidationError,
    WrongPasswordError,
)
from app.core.security import hash_password, verify_password
from app.core.tokens import generate_token, hash_token, sign_short_lived_token, verify_short_lived_token
from app.models.note import Category, Note
from app.models.profile import Profile
from app.models.user import User
from app.services.files import UploadedFile, clean_files, remove_quietly
from app.services.mailer import email_change_email, verification_email
from app.services.notes import remove_note
from app.utils.ids import parse_id

logger = logging.getLogger(__name__)

RESEND_COOKIE = "resend"


def find_by_email(db: Session, email: str, exclude_id: Optional[int] = None) -> Optional[User]:
    """Case-insensitive lookup on the confirmed email."""
    q = select(User).where(func.lower(User.email) == email.strip().lower())
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    return db.scalars(q).first()


def send_verification_email(mailer, to: str, username: str, token: str) -> bool:
    """Fire-and-forget sender used by registration and resend; failures are only logged."""
    message = verification_email(username, token)
    sent = mailer.send(to=to, subject=message["subject"], body=message["body"])
    if not sent:
        logger.warning("verification email to user %s was not delivered", username)
    return sent


def resend_cookie_token(user: User) -> str:
    return sign_short_lived_token(
        {"id": user.id, "email": user.email},
        settings.RESEND_EMAIL_TOKEN_SECRET,
        timedelta(minutes=settings.RESEND_TOKEN_EXPIRE_MINUTES),
    )


def register(db: Session, username: Optional[str], email: Optional[str], password: Optional[str]):
    """
    Create an unverified account.

    Returns (user, plain_token, resend_token). Only the hash of plain_token is
    stored; the caller emails it. resend_token goes into the `resend` cookie.
    """
    if not username or not email or not password:
        raise ValidationError("All fields are required")

    if find_by_email(db, email):
        raise DuplicateEmailError("Account already exists. Please log in")

    plain, hashed = generate_token()
    user = User(
        username=username,
        email=email.strip(),
        password=hash_password(password),
        verify_email_token=hashed,
        is_verified=False,
    )
    user.profile = Profile()
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost the race against a concurrent registration
        db.rollback()
        raise DuplicateEmailError("Account already exists. Please log in")
    db.refresh(user)
    logger.info("user %s registered", user.id)

    return user, plain, resend_cookie_token(user)


def reissue_verification(db: Session, resend_token: Optional[str]):
    """
    Issue a fresh verification token for the user named in the resend cookie.

    The new hash overwrites the old one, so earlier emailed tokens stop working.
    Returns (user, plain_token).
    """
    check = verify_short_lived_token(resend_token, settings.RESEND_EMAIL_TOKEN_SECRET)
    if not check.ok:
        logger.info("resend rejected: %s", check.reason)
        raise ResendUnauthorizedError("Email could not be sent")

    try:
        user_id = int(check.claims.get("id"))
    except (TypeError, ValueError):
        raise ResendUnauthorizedError("Email could not be sent")

    user = db.get(User, user_id)
    # only an unverified account can ask for another link
    if not user or user.is_verified:
        raise ResendUnauthorizedError("Email could not be sent")

    plain, hashed = generate_token()
    user.verify_email_token = hashed
    db.commit()
    logger.info("verification token reissued for user %s", user.id)
    return user, plain


def confirm_email(db: Session, token: str) -> User:
    """Flip is_verified and promote a pending new_email."""
    user = db.scalars(select(User).where(User.verify_email_token == hash_token(token))).first()
    if not user:
        raise AuthError("Invalid or expired token")

    if user.new_email:
        if find_by_email(db, user.new_email, exclude_id=user.id):
            raise DuplicateEmailError("Duplicate email")
        user.email = user.new_email
        user.new_email = None
    user.is_verified = True
    user.verify_email_token = None
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmailError("Duplicate email")
    db.refresh(user)
    return user


def _target_user(db: Session, user_id, current: User) -> User:
    uid = parse_id(user_id, "User not found")
    # accounts are only managed by their owner
    if uid != current.id:
        raise NotFoundError("User not found")
    user = db.get(User, uid)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_account(
    db: Session,
    storage,
    mailer,
    user_id,
    current: User,
    password: Optional[str],
    username: Optional[str] = None,
    email: Optional[str] = None,
    phone_number: Optional[str] = None,
    new_password: Optional[str] = None,
    bio: Optional[str] = None,
    profile_image: Optional[UploadedFile] = None,
) -> User:
    """
    Re-authenticate with `password`, then apply the changes.

    An email change goes to new_email with a fresh verification token and the
    email is sent synchronously. The uploaded image is removed from storage
    whenever the update is rejected.
    """
    entries = clean_files([profile_image] if profile_image else None)
    public_id = entries[0]["path"] if entries else None

    try:
        user = _target_user(db, user_id, current)

        if not password:
            raise ValidationError("Password is required")
        if not verify_password(password, user.password):
            raise WrongPasswordError("Wrong password")

        if new_password:
            user.password = hash_password(new_password)
        if username:
            user.username = username
        if phone_number:
            user.phone_number = phone_number
        if bio is not None:
            if user.profile is None:
                user.profile = Profile()
            user.profile.bio = bio

        if email and email.strip().lower() != user.email.lower():
            try:
                validate_email(email.strip(), check_deliverability=False)
            except EmailNotValidError:
                raise ValidationError("Invalid email")
            if find_by_email(db, email, exclude_id=user.id):
                raise DuplicateEmailError("Duplicate email")

            plain, hashed = generate_token()
            user.new_email = email.strip()
            user.verify_email_token = hashed

            message = email_change_email(user.username, plain)
            if not mailer.send(to=user.new_email, subject=message["subject"], body=message["body"]):
                raise EmailDeliveryError("Account could not be updated. Please try again")

        previous_public_id = user.profile_public_id
        if public_id:
            user.profile_public_id = public_id
            user.profile_url = storage.url_for(public_id)

        db.commit()
    except Exception:
        db.rollback()
        remove_quietly(storage, public_id)
        raise

    # the old avatar goes only once the row points at the new one
    if public_id:
        remove_quietly(storage, previous_public_id)

    db.refresh(user)
    logger.info("user %s updated", user.id)
    return user


def delete_account(db: Session, storage, user_id, current: User) -> int:
    """Remove notes (with their files and links), categories, avatar and profile, then the user."""
    user = _target_user(db, user_id, current)
    uid = user.id

    for note in db.scalars(select(Note).where(Note.user_id == uid)).all():
        remove_note(db, storage, note)
    db.flush()

    for category in db.scalars(select(Category).where(Category.user_id == uid)).all():
        db.delete(category)
    db.flush()

    remove_quietly(storage, user.profile_public_id)
    # profile goes with the user through the relationship cascade
    db.delete(user)
    db.commit()
    logger.info("user %s deleted", uid)
    return uid
