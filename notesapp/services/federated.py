from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import AppError, ValidationError
from ..models import User
from ..observability.metrics import FEDERATED_LOGINS
from ..repos import users as users_repo
from .google_identity import IdentityVerifier

logger = logging.getLogger(__name__)


async def login_with_google(db: AsyncSession, verifier: IdentityVerifier, *, id_token: Optional[str]) -> User:
    """
    Sign in with a Google ID token.

    Creates a fully populated user on first login. An existing user without a
    linked Google account gets the subject id and picture attached; OTP state
    is left alone either way.
    """
    if not id_token:
        raise ValidationError("Google ID token is required")

    try:
        identity = await verifier.verify(id_token)
    except AppError:
        FEDERATED_LOGINS.labels(result="rejected").inc()
        raise

    user = await users_repo.get_by_email(db, identity.email)
    if user is None:
        user = await users_repo.create(
            db,
            email=identity.email,
            name=identity.name,
            profile_picture=identity.picture,
            google_id=identity.subject,
        )
        logger.info("user %s created from Google sign-in", user.id)
        FEDERATED_LOGINS.labels(result="created").inc()
    else:
        if not user.google_id:
            user.google_id = identity.subject
            user.profile_picture = identity.picture or user.profile_picture
            logger.info("linked Google account to user %s", user.id)
        FEDERATED_LOGINS.labels(result="existing").inc()

    await db.commit()
    return user
