"""
Transactional email (verification and password reset) via an SMTP2GO-style HTTP API
"""
import logging
from typing import Any, Dict
from urllib.parse import urlencode

import requests

from app.config.settings import settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, api_url=None, api_key=None, sender=None):
        self.api_url = api_url if api_url is not None else settings.mail_api_url
        self.api_key = api_key if api_key is not None else settings.mail_api_key
        self.sender = sender or settings.mail_from

    @property
    def enabled(self) -> bool:
        return bool(self.api_url and self.api_key)

    def send(self, to_email: str, subject: str, text_body: str) -> Dict[str, Any]:
        """
        Send a plain text email.

        Delivery problems are reported in the returned dict rather than raised,
        so an auth flow never fails because the mail provider is down.
        """
        if not self.enabled:
            logger.info(f"Mail delivery not configured, skipping '{subject}' to {to_email}")
            return {"success": False, "error": "Mail delivery not configured"}

        payload = {
            "api_key": self.api_key,
            "to": [to_email],
            "sender": self.sender,
            "subject": subject,
            "text_body": text_body,
        }
        try:
            response = requests.post(self.api_url, json=payload, timeout=30)
            response.raise_for_status()
            result = response.json()
            if result.get("data", {}).get("error"):
                logger.error(f"Mail API error: {result['data']['error']}")
                return {"success": False, "error": result["data"]["error"]}
            logger.info(f"Email sent: to={to_email}, subject={subject}")
            return {"success": True, "data": result.get("data")}
        except requests.RequestException as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return {"success": False, "error": str(e)}

    def send_verification_email(self, to_email: str, token: str) -> Dict[str, Any]:
        link = f"{settings.frontend_url}/verify-email?{urlencode({'email': to_email, 'token': token})}"
        return self.send(
            to_email,
            "Verify your email address",
            f"Welcome! Confirm your email address by opening the link below:\n\n{link}\n",
        )

    def send_password_reset_email(self, to_email: str, token: str) -> Dict[str, Any]:
        link = f"{settings.frontend_url}/reset-password?{urlencode({'email': to_email, 'token': token})}"
        return self.send(
            to_email,
            "Reset your password",
            f"A password reset was requested for your account. Open the link below to choose a new password:\n\n{link}\n\n"
            "If you did not request this, you can ignore this email.",
        )


def get_mailer() -> Mailer:
    return Mailer()
