from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from ..errors import ServerError, UpstreamAuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalIdentity:
    subject: str
    email: str
    name: str = ""
    picture: Optional[str] = None


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> ExternalIdentity: ...


class GoogleTokenVerifier:
    """Verifies Google Sign-In ID tokens against the configured client id."""

    def __init__(self, client_id: Optional[str]) -> None:
        self._client_id = client_id
        self._transport = google_requests.Request()

    @property
    def enabled(self) -> bool:
        return bool(self._client_id)

    def _verify_blocking(self, token: str) -> Dict[str, Any]:
        return google_id_token.verify_oauth2_token(token, self._transport, self._client_id)

    async def verify(self, token: str) -> ExternalIdentity:
        if not self.enabled:
            raise ServerError("Google sign-in is not configured")

        loop = asyncio.get_running_loop()
        try:
            claims = await loop.run_in_executor(None, self._verify_blocking, token)
        except (ValueError, GoogleAuthError) as exc:
            logger.info("Google ID token rejected: %s", exc)
            raise UpstreamAuthError("Invalid Google token") from exc

        email = claims.get("email")
        sub = claims.get("sub")
        if not email or not sub:
            raise UpstreamAuthError("Invalid Google token")
        return ExternalIdentity(
            subject=str(sub),
            email=str(email),
            name=claims.get("name") or "",
            picture=claims.get("picture"),
        )
