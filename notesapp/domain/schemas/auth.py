from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel

from ...models import User


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendOtpIn(CamelModel):
    email: Optional[EmailStr] = None


class SendOtpOut(CamelModel):
    message: str
    success: bool = True


class VerifyOtpIn(CamelModel):
    email: Optional[EmailStr] = None
    otp: Optional[str] = None
    # Optional onboarding fields (first-time sign-up)
    name: Optional[str] = None
    dob: Optional[date] = None


class GoogleLoginIn(CamelModel):
    id_token: Optional[str] = None


class AuthUserOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    dob: Optional[date] = None
    profile_picture: Optional[str] = None
    token: str

    @classmethod
    def from_model(cls, u: User, token: str) -> "AuthUserOut":
        return cls(
            id=u.id,
            name=u.name,
            email=u.email,
            dob=u.dob,
            profile_picture=u.profile_picture,
            token=token,
        )


class ProfileOut(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    dob: Optional[date] = None
    profile_picture: Optional[str] = None
    google_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, u: User) -> "ProfileOut":
        return cls(
            id=u.id,
            name=u.name,
            email=u.email,
            dob=u.dob,
            profile_picture=u.profile_picture,
            google_id=u.google_id,
            created_at=u.created_at,
            updated_at=u.updated_at,
        )
