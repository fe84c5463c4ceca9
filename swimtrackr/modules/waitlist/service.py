"""
Waitlist capture: reCAPTCHA check, then best-effort Resend audience and welcome email.
"""

import httpx
import logging
from typing import Optional

from swimtrackr.config.settings import Settings
from swimtrackr.modules.waitlist.schemas import WaitlistEntry

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to the SwimTrackr Waitlist"


def welcome_html(name: str) -> str:
    return f"""
        <div style="font-family: 'Arial', sans-serif; max-width: 600px; margin: 0 auto;">
          <h1 style="color: #2563eb;">Welcome to SwimTrackr!</h1>
          <p>Hi {name},</p>
          <p>Thank you for joining our waitlist. We're excited to have you on board!</p>
          <p>We're working hard to bring you the best swim school management platform. You'll be among the first to know when we launch.</p>
          <p>In the meantime, if you have any questions, feel free to reply to this email.</p>
          <p>Best regards,</p>
          <p>The SwimTrackr Team</p>
        </div>
    """


class WaitlistService:
    def __init__(self, settings: Settings, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    def _resend_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.resend_api_key}",
            "Content-Type": "application/json",
        }

    async def verify_captcha(self, token: str) -> bool:
        """
        Ask reCAPTCHA whether the token is valid. Without a secret key the check
        passes in development only. Transport errors propagate to the caller.
        """
        if not self.settings.recaptcha_secret_key:
            if self.settings.is_development:
                return True
            logger.warning("RECAPTCHA_SECRET_KEY is not set; rejecting captcha")
            return False

        async with self._client() as client:
            response = await client.post(
                self.settings.recaptcha_verify_url,
                data={"secret": self.settings.recaptcha_secret_key, "response": token},
                timeout=self.timeout,
            )
        return response.json().get("success") is True

    async def add_to_audience(self, entry: WaitlistEntry) -> None:
        if not self.settings.resend_audience_id:
            logger.warning("No Resend audience ID provided. Skipping audience addition.")
            return
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.settings.resend_base_url}/audiences/{self.settings.resend_audience_id}/contacts",
                    json={
                        "email": entry.email,
                        "first_name": entry.first_name,
                        "last_name": entry.last_name,
                        "unsubscribed": False,
                    },
                    headers=self._resend_headers(),
                    timeout=self.timeout,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error adding {entry.email} to Resend audience: {e}")

    async def send_confirmation(self, entry: WaitlistEntry) -> None:
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.settings.resend_base_url}/emails",
                    json={
                        "from": self.settings.resend_from_email,
                        "to": entry.email,
                        "subject": WELCOME_SUBJECT,
                        "html": welcome_html(entry.name),
                    },
                    headers=self._resend_headers(),
                    timeout=self.timeout,
                )
                response.raise_for_status()
                logger.info(f"Waitlist confirmation sent to {entry.email}")
        except httpx.HTTPError as e:
            logger.error(f"Error sending waitlist confirmation to {entry.email}: {e}")
