from __future__ import annotations
import uuid
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ..models import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == normalize_email(email)))
    return res.scalar_one_or_none()


async def create(
    db: AsyncSession,
    *,
    email: str,
    name: str = "",
    profile_picture: Optional[str] = None,
    google_id: Optional[str] = None,
) -> User:
    user = User(
        email=normalize_email(email),
        name=name or "",
        profile_picture=profile_picture,
        google_id=google_id,
    )
    db.add(user)
    await db.flush()
    return user


async def delete(db: AsyncSession, user: User) -> None:
    await db.delete(user)
    await db.flush()
