"""Email notifications.

Handles:
- Account emails (confirmation, password reset)
- Review decision emails to applicants and organizers
- Business inquiries forwarded to the admin address
"""

import logging
from email.mime.text import MIMEText
from enum import Enum
from typing import Any, Dict, Optional

import aiosmtplib

from marketplace.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    CONFIRM_EMAIL = "confirm_email"
    PASSWORD_RESET = "password_reset"
    SELLER_APPLICATION_DECIDED = "seller_application_decided"
    EVENT_REQUEST_DECIDED = "event_request_decided"
    BUSINESS_INQUIRY = "business_inquiry"


EMAIL_TEMPLATES = {
    NotificationType.CONFIRM_EMAIL: {
        "subject": "[{app_name}] Confirm your email",
        "body": """
Welcome{name_suffix}!

Confirm your email address to finish creating your account:

{link}

---
{app_name}
        """,
    },
    NotificationType.PASSWORD_RESET: {
        "subject": "[{app_name}] Reset your password",
        "body": """
We received a request to reset your password.

Choose a new password here:

{link}

If you did not ask for this, you can ignore this email.

---
{app_name}
        """,
    },
    NotificationType.SELLER_APPLICATION_DECIDED: {
        "subject": "[{app_name}] Your seller application was {decision}",
        "body": """
Your application to sell tickets as {business_name} was {decision}.

{next_steps}

---
{app_name}
        """,
    },
    NotificationType.EVENT_REQUEST_DECIDED: {
        "subject": "[{app_name}] Event {decision}: {title}",
        "body": """
Your event "{title}" on {date} was {decision}.

{next_steps}

---
{app_name}
        """,
    },
    NotificationType.BUSINESS_INQUIRY: {
        "subject": "[{app_name}] Business inquiry: {inquiry_type}",
        "body": """
New business inquiry:

Name: {name}
Email: {email}
Phone: {phone}
Company: {company}
Type: {inquiry_type}

{message}
        """,
    },
}


class NotificationService:
    """Renders templates and delivers them over SMTP."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def send_confirmation(self, to_email: str, link: str, full_name: Optional[str] = None) -> bool:
        return await self._send_email(
            to_email,
            NotificationType.CONFIRM_EMAIL,
            {"link": link, "name_suffix": f", {full_name}" if full_name else ""},
        )

    async def send_password_reset(self, to_email: str, link: str) -> bool:
        return await self._send_email(to_email, NotificationType.PASSWORD_RESET, {"link": link})

    async def notify_application_decided(self, to_email: str, business_name: str, decision: str) -> bool:
        next_steps = (
            "You can now create events from your seller dashboard."
            if decision == "approved"
            else "You are welcome to apply again with updated details."
        )
        return await self._send_email(
            to_email,
            NotificationType.SELLER_APPLICATION_DECIDED,
            {"business_name": business_name, "decision": decision, "next_steps": next_steps},
        )

    async def notify_event_decided(self, to_email: str, title: str, event_date: Any, decision: str) -> bool:
        next_steps = (
            "It is now listed publicly and open for ticket sales."
            if decision == "approved"
            else "You can submit a revised event request at any time."
        )
        return await self._send_email(
            to_email,
            NotificationType.EVENT_REQUEST_DECIDED,
            {"title": title, "date": event_date, "decision": decision, "next_steps": next_steps},
        )

    async def forward_business_inquiry(self, inquiry: Dict[str, Any]) -> bool:
        if not self.settings.admin_email:
            logger.warning("ADMIN_EMAIL not configured, business inquiry not forwarded")
            return False
        context = {key: inquiry.get(key) or "-" for key in ("name", "email", "phone", "company", "inquiry_type", "message")}
        return await self._send_email(self.settings.admin_email, NotificationType.BUSINESS_INQUIRY, context)

    def render(self, notification_type: NotificationType, context: Dict[str, Any]) -> tuple[str, str]:
        """Render subject and body for a notification."""
        template = EMAIL_TEMPLATES[notification_type]
        context = {"app_name": self.settings.app_name, **context}
        return template["subject"].format(**context), template["body"].format(**context).strip() + "\n"

    async def _send_email(
        self,
        to_email: str,
        notification_type: NotificationType,
        context: Dict[str, Any],
    ) -> bool:
        """Send an email notification. Returns whether it was delivered."""
        subject, body = self.render(notification_type, context)
        try:
            return await self._deliver_email(to_email, subject, body)
        except (aiosmtplib.SMTPException, OSError):
            logger.exception("Failed to send %s email to %s", notification_type.value, to_email)
            return False

    async def _deliver_email(self, to_email: str, subject: str, body: str) -> bool:
        """Actually deliver the email via SMTP."""
        if not self.settings.smtp_host:
            logger.warning("SMTP not configured, skipping email delivery")
            return False

        msg = MIMEText(body)
        msg["Subject"] = subject
        msg["From"] = f"{self.settings.smtp_from_name} <{self.settings.smtp_from_email}>"
        msg["To"] = to_email

        await aiosmtplib.send(
            msg,
            hostname=self.settings.smtp_host,
            port=self.settings.smtp_port,
            username=self.settings.smtp_user,
            password=self.settings.smtp_password,
            start_tls=self.settings.smtp_use_tls,
        )
        logger.info("Sent %r to %s", subject, to_email)
        return True
