"""
Transactional email through the Brevo HTTP API.

``EmailService.send`` is the only transport primitive; it reports failure as
``False`` and never raises, so callers decide whether to retry.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from workshop_app.config import settings
from workshop_app.schemas import DEFAULT_SUBJECT_TEMPLATE, GlobalReminderSettings, WorkshopView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sender:
    name: str
    email: str


class EmailService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[Sender] = None,
        timeout: Optional[float] = None,
    ):
        self._api_key = settings.BREVO_API_KEY if api_key is None else api_key
        self._api_url = api_url or settings.BREVO_API_URL
        self._sender = sender or Sender(settings.SENDER_NAME, settings.SENDER_EMAIL)
        self._timeout = settings.EMAIL_SEND_TIMEOUT_SECONDS if timeout is None else timeout

    @property
    def headers(self) -> dict[str, str]:
        return {
            "api-key": self._api_key or "",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def send(self, to: str, subject: str, html_content: str, sender: Optional[Sender] = None) -> bool:
        if not self._api_key:
            logger.warning("Brevo API key not configured, skipping email to %s", to)
            return False

        sender = sender or self._sender
        payload = {
            "sender": {"name": sender.name, "email": sender.email},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html_content,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._api_url, json=payload, headers=self.headers)
        except httpx.TimeoutException:
            logger.error("email send timed out to=%s", to)
            return False
        except httpx.HTTPError as e:
            logger.error("email send failed to=%s error=%s", to, e)
            return False

        if response.status_code >= 400:
            logger.error("email rejected to=%s status=%s body=%s", to, response.status_code, response.text[:300])
            return False

        logger.info("email sent to=%s subject=%r", to, subject)
        return True

    def sender_for(self, global_settings: GlobalReminderSettings) -> Sender:
        """Stored display identity wins over process config."""
        return Sender(
            name=global_settings.sender_name or self._sender.name,
            email=global_settings.sender_email or self._sender.email,
        )

    async def send_reminder_email(
        self,
        to: str,
        user_name: str,
        workshop: WorkshopView,
        global_settings: GlobalReminderSettings,
        subject_override: Optional[str] = None,
    ) -> bool:
        sender = self.sender_for(global_settings)
        subject = render_subject(subject_override or global_settings.email_subject_template, workshop)
        body = render_reminder_html(user_name, workshop, sender.name)
        return await self.send(to, subject, body, sender=sender)

    async def send_test_email(self, to: str) -> bool:
        subject = f"Test Email from {self._sender.name}"
        body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #2563EB;">Email Test Successful!</h2>
      <p>This is a test email from your workshop platform.</p>
      <p>If you received this, your email configuration is working correctly.</p>
      <p style="color: #64748B; font-size: 12px;">— {html.escape(self._sender.name)}</p>
    </div>
"""
        return await self.send(to, subject, body)


def render_subject(template: str, workshop: WorkshopView) -> str:
    # plain replace: admins type these templates, stray braces must not break sending
    return (template or DEFAULT_SUBJECT_TEMPLATE).replace("{workshop_title}", workshop.title)


def render_reminder_html(user_name: str, workshop: WorkshopView, sender_name: str) -> str:
    esc = html.escape
    start = workshop.start_at
    join = ""
    if workshop.zoom_join_url:
        join = (
            '<p style="margin: 5px 0;"><strong>Join URL:</strong> '
            f'<a href="{esc(workshop.zoom_join_url, quote=True)}" style="color: #2563EB;">Click here to join</a></p>'
        )

    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
      <h2 style="color: #2563EB;">Workshop Reminder</h2>
      <p>Hi {esc(user_name)},</p>
      <p>Your workshop <strong>{esc(workshop.title)}</strong> is coming up soon!</p>

      <div style="background: #F1F5F9; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <p style="margin: 5px 0;"><strong>Workshop:</strong> {esc(workshop.title)}</p>
        <p style="margin: 5px 0;"><strong>Instructor:</strong> {esc(workshop.instructor_name)}</p>
        <p style="margin: 5px 0;"><strong>Date:</strong> {start:%A, %d %B %Y}</p>
        <p style="margin: 5px 0;"><strong>Time:</strong> {start:%H:%M} UTC ({workshop.duration_minutes} min)</p>
        {join}
      </div>

      <p>See you there!</p>
      <p style="color: #64748B; font-size: 12px;">— {esc(sender_name)}</p>
    </div>
"""
