"""Development-only helpers; main.create_app mounts these only when DEV_TOOLS_ENABLED and ENV != prod."""
from __future__ import annotations
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import EmailStr

from ...config import get_settings
from ...errors import DispatchError, NotFoundError, ValidationError
from ...services.mailer import DispatchLog, Mailer
from ...services.otp import generate_otp
from ...domain.schemas.auth import CamelModel
from ..dependencies import get_dispatch_log, get_mailer

router = APIRouter(prefix="/api", tags=["dev"])
S = get_settings()


class LastEmailOut(CamelModel):
    url: Optional[str] = None
    to: str
    message_id: str
    sent_at: datetime


class TestEmailIn(CamelModel):
    email: Optional[EmailStr] = None


class TestEmailOut(CamelModel):
    message: str
    preview_url: str


@router.get("/dev/last-email-url", response_model=LastEmailOut)
async def last_email_url(dispatch_log: DispatchLog = Depends(get_dispatch_log)):
    rec = dispatch_log.last
    if rec is None:
        raise NotFoundError("No email has been sent yet")
    return LastEmailOut(url=rec.preview_url, to=rec.to, message_id=rec.message_id, sent_at=rec.sent_at)


@router.post("/test/email", response_model=TestEmailOut)
async def test_email(
    payload: TestEmailIn,
    mailer: Mailer = Depends(get_mailer),
    dispatch_log: DispatchLog = Depends(get_dispatch_log),
):
    if not payload.email:
        raise ValidationError("Email address is required")
    # throwaway code; no user record is touched
    sent = await mailer.send_otp(to=payload.email, code=generate_otp(), expiry_minutes=S.OTP_EXPIRY_MINUTES)
    if not sent:
        raise DispatchError("Failed to send test email")
    rec = dispatch_log.last
    preview = rec.preview_url if rec and rec.preview_url else "No preview URL available"
    return TestEmailOut(message="Test email sent successfully!", preview_url=preview)
