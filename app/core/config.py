# app/core/config.py
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./app.db"

    JWT_ACCESS_SECRET: str = "change-this-secret"
    JWT_REFRESH_SECRET: str = "change-this-refresh-secret"
    RESEND_EMAIL_TOKEN_SECRET: str = "change-this-resend-secret"
    JWT_ALG: str = "HS256"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 1
    RESEND_TOKEN_EXPIRE_MINUTES: int = 15
    RESET_PASSWORD_TOKEN_EXPIRE_MINUTES: int = 15

    COOKIE_SECURE: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # storage / mail stay empty until used
    AZURE_STORAGE_CONNECTION_STRING: str = ""
    AZURE_CONTAINER_NAME: str = ""

    RESEND_API_KEY: str = ""
    MAIL_FROM: str = "Notes <no-reply@example.com>"
    VERIFY_EMAIL_URL: str = "http://localhost:3000/verify"
    RESET_PASSWORD_URL: str = "http://localhost:3000/reset"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
