from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, ForeignKey, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------- Base & naming ----------
class Base(DeclarativeBase):
    # Keep index/constraint names stable for cleaner migrations
    metadata = sa.MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }
    )


@dataclass(frozen=True)
class OtpData:
    """A live one-time code attached to a user record."""

    code: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > as_utc(self.expires_at)


# ---------- USERS ----------
class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    # stored lower-cased; all lookups go through repos.users.normalize_email
    email: Mapped[str] = mapped_column(sa.Text, nullable=False, unique=True)
    # empty until the first OTP verification completes signup
    name: Mapped[str] = mapped_column(sa.Text, nullable=False, default="", server_default="")
    dob: Mapped[Optional[date]] = mapped_column(sa.Date, nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    google_id: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)

    # backing columns for User.otp
    otp_code: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    otp_expires_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, server_default=sa.func.now()
    )

    __table_args__ = (
        CheckConstraint("(otp_code IS NULL) = (otp_expires_at IS NULL)", name="users_otp_pair"),
    )

    @property
    def otp(self) -> Optional[OtpData]:
        if self.otp_code is None or self.otp_expires_at is None:
            return None
        return OtpData(code=self.otp_code, expires_at=as_utc(self.otp_expires_at))

    @otp.setter
    def otp(self, value: Optional[OtpData]) -> None:
        if value is None:
            self.otp_code = None
            self.otp_expires_at = None
        else:
            self.otp_code = value.code
            self.otp_expires_at = value.expires_at

    @property
    def has_completed_profile(self) -> bool:
        return bool(self.name)

    @property
    def is_pending_signup(self) -> bool:
        return not self.has_completed_profile and self.otp is not None


# ---------- NOTES ----------
class Note(Base):
    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(sa.Text, nullable=False)
    content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow, server_default=sa.func.now()
    )

    __table_args__ = (
        Index("ix_notes_user_created", "user_id", "created_at"),
    )
