from __future__ import annotations
import uuid
from typing import Optional

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..errors import AuthenticationError
from ..models import User
from ..repos import users as users_repo
from .jwt import verify_jwt


def bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    token = bearer_token(request)
    if not token:
        raise AuthenticationError("Not authorized, no token")

    try:
        claims = verify_jwt(token)
    except jwt.PyJWTError:
        raise AuthenticationError("Not authorized, token failed")

    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError:
        raise AuthenticationError("Not authorized, token failed")

    user = await users_repo.get_by_id(db, user_id)
    if user is None:
        raise AuthenticationError("Not authorized, user not found")
    return user


def get_current_user_id(request: Request) -> uuid.UUID:
    """Identity from the bearer token alone, without loading the user row."""
    token = bearer_token(request)
    if not token:
        raise AuthenticationError("Not authorized, no token")
    try:
        claims = verify_jwt(token)
        return uuid.UUID(str(claims.get("sub")))
    except (jwt.PyJWTError, ValueError):
        raise AuthenticationError("Not authorized, token failed")
