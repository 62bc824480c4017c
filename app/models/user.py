import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.utils.dates import utcnow


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    username = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    # pending email change; login keeps using `email` until confirmed
    new_email = Column(String(255), nullable=True)
    # empty when the account has no password
    password = Column(String(255), nullable=False, default="")

    verify_email_token = Column(String(64), nullable=True, index=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    roles = Column(JSON, nullable=False, default=lambda: [Role.USER.value])

    phone_number = Column(String(32), nullable=True)
    profile_url = Column(String(1024), nullable=True)
    profile_public_id = Column(String(512), nullable=True)

    reset_password_token = Column(String(64), nullable=True, index=True)
    reset_password_token_expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    profile = relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    notes = relationship("Note", back_populates="user")
    categories = relationship("Category", back_populates="user")
