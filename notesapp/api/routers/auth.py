from __future__ import annotations
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import get_settings
from ...db import get_db
from ...errors import NotFoundError
from ...repos import users as users_repo
from ...auth.jwt import issue_session_token
from ...auth.deps import get_current_user_id
from ...services import otp as otp_service
from ...services.federated import login_with_google
from ...services.google_identity import IdentityVerifier
from ...services.mailer import Mailer
from ...domain.schemas.auth import (
    AuthUserOut,
    GoogleLoginIn,
    ProfileOut,
    SendOtpIn,
    SendOtpOut,
    VerifyOtpIn,
)
from ..dependencies import get_identity_verifier, get_mailer

router = APIRouter(prefix="/api/auth", tags=["auth"])

S = get_settings()


@router.post("/send-otp", response_model=SendOtpOut)
async def send_otp(
    payload: SendOtpIn,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    result = await otp_service.request_otp(
        db, mailer, email=payload.email, expiry_minutes=S.OTP_EXPIRY_MINUTES
    )
    return SendOtpOut(message=result.message, success=True)


@router.post("/verify-otp", response_model=AuthUserOut)
async def verify_otp(payload: VerifyOtpIn, db: AsyncSession = Depends(get_db)):
    user = await otp_service.verify_otp(
        db, email=payload.email, code=payload.otp, name=payload.name, dob=payload.dob
    )
    return AuthUserOut.from_model(user, issue_session_token(user))


@router.post("/google", response_model=AuthUserOut)
async def google_login(
    payload: GoogleLoginIn,
    db: AsyncSession = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    user = await login_with_google(db, verifier, id_token=payload.id_token)
    return AuthUserOut.from_model(user, issue_session_token(user))


@router.get("/profile", response_model=ProfileOut)
async def profile(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    user = await users_repo.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return ProfileOut.from_model(user)
