from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import DispatchError, NotFoundError, OtpInvalidError, ValidationError
from ..models import OtpData, User
from ..observability.metrics import OTP_REQUESTS, OTP_VERIFICATIONS
from ..repos import users as users_repo
from .mailer import Mailer

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_MINUTES = 10

REASON_MISSING = "No OTP data found"
REASON_MISMATCH = "OTP mismatch"
REASON_EXPIRED = "OTP expired"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def generate_otp() -> str:
    # 100000..999999: always six digits, never a leading zero
    return str(100_000 + secrets.randbelow(900_000))


@dataclass
class OtpIssue:
    user: User
    code: str
    expires_at: datetime
    created: bool


@dataclass
class OtpRequestResult:
    email: str
    code: str
    expires_at: datetime
    created: bool
    message: str


def _require_email(email: Optional[str]) -> str:
    if not email or not email.strip():
        raise ValidationError("Email is required")
    return users_repo.normalize_email(email)


async def issue_otp(db: AsyncSession, *, email: str, expiry_minutes: int = DEFAULT_EXPIRY_MINUTES) -> OtpIssue:
    """
    Create-or-update step of an OTP request.

    Overwrites the OTP of an existing user (any earlier code stops working) or
    creates a pending user with an empty name. Profile fields of an existing
    user are never touched. Flushes but does not commit, except when a
    concurrent insert of the same email wins: the session is rolled back and
    the winner row gets this code.
    """
    code = generate_otp()
    expires_at = _now_utc() + timedelta(minutes=expiry_minutes)

    user = await users_repo.get_by_email(db, email)
    created = False
    if user is None:
        try:
            user = await users_repo.create(db, email=email)
            created = True
            logger.info("pending user created id=%s", user.id)
        except IntegrityError:
            # a concurrent request inserted this email first; overwrite its code
            await db.rollback()
            user = await users_repo.get_by_email(db, email)
    user.otp = OtpData(code=code, expires_at=expires_at)
    await db.flush()
    return OtpIssue(user=user, code=code, expires_at=expires_at, created=created)


async def request_otp(
    db: AsyncSession,
    mailer: Mailer,
    *,
    email: Optional[str],
    expiry_minutes: int = DEFAULT_EXPIRY_MINUTES,
) -> OtpRequestResult:
    """
    Issue a code for `email` and mail it.

    If the mailer reports failure or raises, and this call created the user, the user
    is deleted again before DispatchError is raised. A pre-existing user keeps
    the new, undelivered code.
    """
    email = _require_email(email)
    issue = await issue_otp(db, email=email, expiry_minutes=expiry_minutes)
    await db.commit()

    try:
        sent = await mailer.send_otp(to=email, code=issue.code, expiry_minutes=expiry_minutes)
    except Exception:
        logger.exception("mailer raised while sending OTP to %s", email)
        sent = False
    if not sent:
        OTP_REQUESTS.labels(result="dispatch_failed").inc()
        if issue.created:
            await users_repo.delete(db, issue.user)
            await db.commit()
            logger.warning("OTP dispatch to %s failed; removed pending user %s", email, issue.user.id)
        else:
            logger.warning("OTP dispatch to %s failed; existing user %s keeps undelivered code", email, issue.user.id)
        raise DispatchError("Failed to send OTP. Please check your email address and try again.")

    OTP_REQUESTS.labels(result="sent").inc()
    return OtpRequestResult(
        email=email,
        code=issue.code,
        expires_at=issue.expires_at,
        created=issue.created,
        message=f"OTP sent to {email}. Valid for {expiry_minutes} minutes.",
    )


def check_otp(otp: Optional[OtpData], submitted: str, now: datetime) -> None:
    """Raise OtpInvalidError unless `submitted` matches a live code."""
    if otp is None:
        raise OtpInvalidError(kind="missing", reason=REASON_MISSING, expired=True)
    expired = otp.is_expired(now)
    if otp.code != submitted:
        raise OtpInvalidError(kind="mismatch", reason=REASON_MISMATCH, expired=expired)
    if expired:
        raise OtpInvalidError(kind="expired", reason=REASON_EXPIRED, expired=True)


async def verify_otp(
    db: AsyncSession,
    *,
    email: Optional[str],
    code: Optional[str],
    name: Optional[str] = None,
    dob: Optional[date] = None,
) -> User:
    if not email or not email.strip() or not code:
        raise ValidationError("Email and OTP are required")

    user = await users_repo.get_by_email(db, email)
    if user is None:
        OTP_VERIFICATIONS.labels(result="not_found").inc()
        raise NotFoundError("User not found", status_code=400)

    try:
        check_otp(user.otp, code.strip(), _now_utc())
    except OtpInvalidError as exc:
        OTP_VERIFICATIONS.labels(result=exc.kind).inc()
        logger.info("OTP verification failed for user %s: %s", user.id, exc.reason)
        raise

    user.otp = None
    if not user.name and name and name.strip():
        user.name = name.strip()
    if dob is not None:
        user.dob = dob
    await db.commit()

    OTP_VERIFICATIONS.labels(result="ok").inc()
    logger.info("OTP verified for user %s", user.id)
    return user
