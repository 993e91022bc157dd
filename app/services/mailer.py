from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional
from urllib.parse import urlencode

import resend

from app.config import get_settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, api_key: str, sender: str, frontend_url: str, app_name: str):
        self.api_key = api_key.strip()
        self.sender = sender.strip()
        self.frontend_url = frontend_url.rstrip("/")
        self.app_name = app_name

    def _require(self) -> None:
        if not self.api_key:
            raise RuntimeError("RESEND_API_KEY is not set")
        if not self.sender:
            raise RuntimeError("MAIL_FROM is not set")

    def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> dict:
        self._require()
        resend.api_key = self.api_key

        params = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            params["text"] = text

        res = resend.Emails.send(params)
        logger.info("Sent '%s' email to %s", subject, to)
        return res

    def verify_link(self, token: str) -> str:
        return f"{self.frontend_url}/confirm-email?{urlencode({'hash': token})}"

    def send_verification_email(self, to: str, token: str) -> dict:
        url = self.verify_link(token)
        subject = "Email Verification"
        html = f"""
        <div style="font-family:Arial,sans-serif;line-height:1.5">
          <h2>{subject}</h2>
          <p>Hey! You're almost ready to start enjoying {self.app_name}.</p>
          <p>Simply click the button below to verify your email address.</p>
          <p><a href="{url}" style="background:#16a34a;color:#fff;padding:12px 16px;border-radius:10px;text-decoration:none">Verify Email</a></p>
          <p style="color:#666;font-size:12px">If you didn't create this account, ignore this email.</p>
        </div>
        """
        return self.send(to=to, subject=subject, html=html, text=f"{subject}: {url}")


@lru_cache
def get_mailer() -> Mailer:
    settings = get_settings()
    return Mailer(
        api_key=settings.resend_api_key,
        sender=settings.mail_from,
        frontend_url=settings.frontend_url,
        app_name=settings.app_name,
    )
