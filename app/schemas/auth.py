from pydantic import EmailStr, Field

from .base import BaseSchema


class LoginIn(BaseSchema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenOut(BaseSchema):
    access_token: str


class ForgotPasswordIn(BaseSchema):
    email: EmailStr


class ResetPasswordIn(BaseSchema):
    password: str = Field(..., min_length=6)
