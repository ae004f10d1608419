"""
Outgoing email.

Messages are rendered with the company's theme (the theme's web font CSS is
fetched and inlined, mail clients do not load external stylesheets) and
then delivered via SMTP, or kept in ``Mailer.deliveries`` when
MAIL_DELIVERY_METHOD is "test".
"""
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.jobs import Job
from app.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class Theme:
    theme_name: str
    font_family: str | None = None

    @property
    def email_font_family_url(self) -> str | None:
        if not self.font_family:
            return None
        family = self.font_family.replace(" ", "+")
        return f"https://fonts.googleapis.com/css2?family={family}:wght@400;700&display=swap"


ALLOWED_THEMES = {
    "default": Theme("default", "Inter"),
    "classic": Theme("classic", "Merriweather"),
    "modern": Theme("modern", "Inter"),
    "plain": Theme("plain"),
}


def get_theme(name: str | None) -> Theme:
    return ALLOWED_THEMES.get(name or "default", ALLOWED_THEMES["default"])


@dataclass
class MailMessage:
    to: str
    subject: str
    html: str
    theme: str = "default"


def _fetch_font_css(url: str) -> str:
    response = httpx.get(url, timeout=10)
    response.raise_for_status()
    return response.text


def render(message: MailMessage) -> str:
    theme = get_theme(message.theme)
    css = ""
    if theme.email_font_family_url:
        css = _fetch_font_css(theme.email_font_family_url)
    return f"<html><head><style>{css}</style></head><body>{message.html}</body></html>"


class Mailer:
    deliveries: list[EmailMessage] = []

    @classmethod
    def build(cls, message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = config.MAIL_FROM
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(render(message), subtype="html")
        return email

    @classmethod
    def deliver(cls, message: MailMessage) -> EmailMessage:
        email = cls.build(message)
        if config.MAIL_DELIVERY_METHOD == "test":
            cls.deliveries.append(email)
        else:
            with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as smtp:
                smtp.send_message(email)
        log.info("Delivered mail %r to %s", message.subject, message.to)
        return email


class MailDeliveryJob(Job):
    async def perform(self, db: AsyncSession, to: str, subject: str, html: str, theme: str = "default") -> None:
        Mailer.deliver(MailMessage(to=to, subject=subject, html=html, theme=theme))
