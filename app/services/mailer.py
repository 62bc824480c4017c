# app/services/mailer.py
import logging

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

_BUTTON_STYLE = (
    "display:inline-block;color:#ffffff;background-color:#3498db;border:solid 1px #3498db;"
    "border-radius:5px;cursor:pointer;text-decoration:none;font-size:14px;font-weight:bold;"
    "margin:15px 0px;padding:5px 15px;"
)


class Mailer:
    def __init__(self, api_key: str, sender: str):
        self.api_key = api_key
        self.sender = sender

    def send(self, to: str, subject: str, body: str) -> bool:
        """Send one html email. Returns False instead of raising on any delivery failure."""
        if not self.api_key:
            logger.warning("RESEND_API_KEY is not configured; email to %s not sent", to)
            return False

        resend.api_key = self.api_key
        try:
            response = resend.Emails.send({"from": self.sender, "to": [to], "subject": subject, "html": body})
        except Exception:
            logger.warning("email to %s failed", to, exc_info=True)
            return False

        if not isinstance(response, dict) or not response.get("id"):
            logger.warning("email to %s rejected: %s", to, response)
            return False
        return True


_mailer = Mailer(settings.RESEND_API_KEY, settings.MAIL_FROM)


def get_mailer() -> Mailer:
    return _mailer


def _button(url: str, label: str) -> str:
    return f"<a href='{url}' target='_blank' style='{_BUTTON_STYLE}'>{label}</a>"


def verification_email(username: str, token: str) -> dict:
    return {
        "subject": "Please verify your email",
        "body": f"""
            <p>Hi {username},</p>
            <p>Welcome!</p>
            <p>Please click the button below to confirm your email address:</p>
            {_button(f"{settings.VERIFY_EMAIL_URL}/{token}", "Confirm your email")}
            <p>Thanks!</p>
        """,
    }


def email_change_email(username: str, token: str) -> dict:
    return {
        "subject": "Please verify your email",
        "body": f"""
            <p>Hi {username},</p>
            <p>Complete changing your email address by confirming it below:</p>
            {_button(f"{settings.VERIFY_EMAIL_URL}/{token}", "Confirm your email")}
            <p>If you didn't initiate this request, please disregard this email.</p>
        """,
    }


def reset_password_email(username: str, token: str) -> dict:
    return {
        "subject": "Reset your password",
        "body": f"""
            <p>Hi {username},</p>
            <p>Use the button below to choose a new password. The link expires in
            {settings.RESET_PASSWORD_TOKEN_EXPIRE_MINUTES} minutes.</p>
            {_button(f"{settings.RESET_PASSWORD_URL}/{token}", "Reset password")}
        """,
    }
