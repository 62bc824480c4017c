# app/schemas/user.py
from typing import Optional

from pydantic import EmailStr, Field

from .base import BaseSchema


class RegisterIn(BaseSchema):
    # presence is checked by the account service so every missing field gets the same message
    username: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class UserOut(BaseSchema):
    id: int
    username: str
    email: EmailStr
    new_email: Optional[str] = None
    phone_number: Optional[str] = None
    profile_url: Optional[str] = None
    bio: Optional[str] = None
