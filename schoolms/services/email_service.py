# schoolms/services/email_service.py
"""HTML email rendering (Jinja2) and SMTP delivery."""
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"

SUBJECTS = {
    "welcome": "Your school account is ready",
    "password_reset": "Your password has been reset",
}


class EmailService:
    def __init__(self, template_dir: Optional[Path] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template: str, context: Dict[str, Any]) -> str:
        ctx = {"school_name": settings.app_name, **context}
        return self.env.get_template(f"{template}.html").render(**ctx)

    def _send_sync(self, to: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.smtp_from
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_user and settings.smtp_password:
                server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)

    async def send_email(self, to: str, subject: str, html: str) -> bool:
        if not settings.smtp_host:
            logger.info(f"SMTP not configured, skipping email to {to}: {subject}")
            return False
        try:
            await asyncio.to_thread(self._send_sync, to, subject, html)
            logger.info(f"Email sent to {to}: {subject}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

    async def send_template(self, template: str, to: str, context: Dict[str, Any],
                            subject: Optional[str] = None) -> bool:
        subject = subject or context.get("subject") or SUBJECTS.get(template, settings.app_name)
        html = self.render(template, {"subject": subject, **context})
        return await self.send_email(to, subject, html)

    async def send_welcome(self, to: str, full_name: str, role: str, temporary_password: str) -> bool:
        return await self.send_template("welcome", to, {
            "full_name": full_name,
            "email": to,
            "role": role,
            "temporary_password": temporary_password,
        })

    async def send_password_reset(self, to: str, full_name: str, temporary_password: str) -> bool:
        return await self.send_template("password_reset", to, {
            "full_name": full_name,
            "temporary_password": temporary_password,
        })

    async def send_bulk(self, recipients: List[str], subject: str, body: str,
                        title: Optional[str] = None) -> List[Dict[str, Any]]:
        html = self.render("generic", {"subject": subject, "title": title, "body": body})
        results = []
        for to in dict.fromkeys(recipients):
            results.append({"email": to, "sent": await self.send_email(to, subject, html)})
        return results
