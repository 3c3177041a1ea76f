"""
Transactional email through the Resend HTTP API.
"""

import logging
from html import escape

import requests

from app.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

APP_NAME = "RTASK"

_LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #333; text-align: center;">{heading}</h1>
  <p style="color: #666; font-size: 16px; line-height: 1.5;">Hello {name},</p>
  {body}
  <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">
  <p style="color: #999; font-size: 12px; text-align: center;">
    This is an automated message, please do not reply to this email.
  </p>
</div>
"""


def render_welcome(name: str) -> str:
    body = (
        '<p style="color: #666; font-size: 16px; line-height: 1.5;">'
        f"Welcome to {APP_NAME}! Create your first task, set priorities and due dates, "
        "and keep track of what is done.</p>"
    )
    return _LAYOUT.format(heading=f"Welcome to {APP_NAME}!", name=escape(name), body=body)


def render_password_reset(name: str, reset_url: str, expire_minutes: int) -> str:
    body = (
        '<p style="color: #666; font-size: 16px; line-height: 1.5;">'
        f"We received a request to reset the password of your {APP_NAME} account.</p>"
        '<div style="text-align: center; margin: 30px 0;">'
        f'<a href="{reset_url}" style="background-color: #00FFFF; color: #0A0A0A; '
        'padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: bold;">'
        "Reset Password</a></div>"
        '<p style="color: #666; font-size: 14px; line-height: 1.5;">'
        f"This link will expire in {expire_minutes} minutes. If you didn't request this, "
        "you can safely ignore this email.</p>"
    )
    return _LAYOUT.format(heading="Reset Your Password", name=escape(name), body=body)


class EmailService:
    """Sends HTML emails. Built from settings by ``app.core.deps.get_email_service``."""

    def __init__(self, api_key: str, sender: str, api_url: str, frontend_url: str,
                 reset_expire_minutes: int = 60, timeout: float = 10):
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.frontend_url = frontend_url.rstrip("/")
        self.reset_expire_minutes = reset_expire_minutes
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "EmailService":
        return cls(
            api_key=settings.RESEND_API_KEY,
            sender=settings.EMAIL_FROM,
            api_url=settings.RESEND_API_URL,
            frontend_url=settings.FRONTEND_URL,
            reset_expire_minutes=settings.RESET_TOKEN_EXPIRE_MIN,
            timeout=settings.HTTP_TIMEOUT,
        )

    def send(self, to: str, subject: str, html: str) -> bool:
        """Send one email. Returns False when sending is disabled (no API key)."""
        if not self.api_key:
            logger.warning(f"RESEND_API_KEY not set, email '{subject}' to {to} not sent")
            return False

        try:
            response = requests.post(
                self.api_url,
                json={"from": self.sender, "to": [to], "subject": subject, "html": html},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Email provider error sending '{subject}' to {to}: {e}")
            raise UpstreamServiceError("Failed to send email.") from e

        logger.info(f"Email '{subject}' sent to {to}")
        return True

    def reset_url(self, reset_token: str) -> str:
        return f"{self.frontend_url}/reset-password?token={reset_token}"

    def send_welcome_email(self, user) -> bool:
        return self.send(user.email, f"Welcome to {APP_NAME}!", render_welcome(user.name))

    def send_password_reset_email(self, user, reset_token: str) -> bool:
        html = render_password_reset(user.name, self.reset_url(reset_token), self.reset_expire_minutes)
        return self.send(user.email, f"Reset Your {APP_NAME} Password", html)
