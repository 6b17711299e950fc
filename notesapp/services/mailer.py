from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional, Protocol, Tuple

from ..config import Settings

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your Verification Code"


@dataclass(frozen=True)
class DispatchRecord:
    to: str
    subject: str
    message_id: str
    preview_url: Optional[str]
    sent_at: datetime


class DispatchLog:
    """Holds the most recent successful dispatch for the dev helper endpoints."""

    def __init__(self) -> None:
        self._last: Optional[DispatchRecord] = None

    @property
    def last(self) -> Optional[DispatchRecord]:
        return self._last

    def record(self, rec: DispatchRecord) -> None:
        self._last = rec


class Mailer(Protocol):
    async def send_otp(self, *, to: str, code: str, expiry_minutes: int) -> bool: ...


def render_otp_email(code: str, expiry_minutes: int, app_name: str = "Notes App") -> Tuple[str, str, str]:
    """Return (subject, text, html) for an OTP message."""
    text = (
        "Hello,\n\n"
        f"Your verification code is: {code}\n\n"
        f"This code will expire in {expiry_minutes} minutes.\n\n"
        "If you didn't request this code, please ignore this email.\n\n"
        f"Best regards,\nThe {app_name} Team"
    )
    html = f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 5px;">
  <h2 style="color: #1976d2; text-align: center;">{app_name}</h2>
  <p style="font-size: 16px;">Hello,</p>
  <p style="font-size: 16px;">Your verification code is:</p>
  <h1 style="text-align: center; letter-spacing: 5px; font-size: 32px; padding: 10px; background-color: #f5f5f5; border-radius: 4px;">{code}</h1>
  <p style="font-size: 16px;">This code will expire in {expiry_minutes} minutes.</p>
  <p style="font-size: 16px;">If you didn't request this code, please ignore this email.</p>
  <p style="font-size: 16px;">Best regards,<br>The {app_name} Team</p>
</div>
"""
    return OTP_SUBJECT, text, html


class SmtpMailer:
    """SMTP transport; the blocking smtplib session runs in the default executor."""

    def __init__(self, settings: Settings, dispatch_log: Optional[DispatchLog] = None) -> None:
        self._host = settings.SMTP_HOST
        self._port = settings.SMTP_PORT
        self._use_ssl = settings.SMTP_USE_SSL
        self._timeout = settings.SMTP_TIMEOUT_SEC
        self._user = settings.EMAIL_USER
        self._password = settings.EMAIL_PASS
        self._from_name = settings.MAIL_FROM_NAME
        self._dispatch_log = dispatch_log
        if not self.enabled:
            logger.info("SMTP mail disabled; EMAIL_USER/EMAIL_PASS not set")

    @property
    def enabled(self) -> bool:
        return bool(self._user and self._password)

    def _build_message(self, to: str, code: str, expiry_minutes: int) -> EmailMessage:
        subject, text, html = render_otp_email(code, expiry_minutes, self._from_name)
        msg = EmailMessage()
        msg["From"] = formataddr((self._from_name, self._user or ""))
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        if self._use_ssl:
            client = smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        else:
            client = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        with client as smtp:
            if not self._use_ssl:
                smtp.starttls()
            smtp.login(self._user, self._password)
            smtp.send_message(msg)

    async def send_otp(self, *, to: str, code: str, expiry_minutes: int) -> bool:
        if not self.enabled:
            logger.warning("OTP email to %s not sent: SMTP is not configured", to)
            return False

        msg = self._build_message(to, code, expiry_minutes)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._deliver, msg)
        except (smtplib.SMTPException, OSError, UnicodeError) as exc:
            logger.warning("SMTP send to %s failed: %s", to, exc)
            return False

        logger.info("OTP email sent to %s message_id=%s", to, msg["Message-ID"])
        if self._dispatch_log is not None:
            self._dispatch_log.record(DispatchRecord(
                to=to,
                subject=msg["Subject"],
                message_id=msg["Message-ID"],
                preview_url=None,
                sent_at=datetime.now(timezone.utc),
            ))
        return True


class ConsoleMailer:
    """DEV sender: logs the OTP instead of emailing it."""

    def __init__(self, dispatch_log: Optional[DispatchLog] = None) -> None:
        self._dispatch_log = dispatch_log

    async def send_otp(self, *, to: str, code: str, expiry_minutes: int) -> bool:
        logger.warning("[DEV] OTP for %s: %s (valid %s min)", to, code, expiry_minutes)
        if self._dispatch_log is not None:
            self._dispatch_log.record(DispatchRecord(
                to=to,
                subject=OTP_SUBJECT,
                message_id=make_msgid(domain="console.local"),
                preview_url=None,
                sent_at=datetime.now(timezone.utc),
            ))
        return True


def build_mailer(settings: Settings, dispatch_log: Optional[DispatchLog] = None) -> Mailer:
    if settings.smtp_configured or settings.ENV == "prod":
        return SmtpMailer(settings, dispatch_log)
    logger.info("SMTP credentials missing; using console mailer (ENV=%s)", settings.ENV)
    return ConsoleMailer(dispatch_log)
