from __future__ import annotations
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base for errors that map onto a structured JSON response."""

    status_code = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = extra

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message, **self.extra}


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 401


class OtpInvalidError(AppError):
    status_code = 400

    def __init__(self, *, kind: str, reason: str, expired: bool) -> None:
        super().__init__("Invalid or expired OTP", reason=reason, expired=expired)
        self.kind = kind  # missing | mismatch | expired
        self.reason = reason
        self.expired = expired


class DispatchError(AppError):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message, success=False)


class UpstreamAuthError(AppError):
    status_code = 400


class ServerError(AppError):
    status_code = 500
