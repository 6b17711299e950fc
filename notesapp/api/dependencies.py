"""Per-application collaborators, resolved from app.state so tests can inject fakes."""
from fastapi import Request

from ..services.google_identity import IdentityVerifier
from ..services.mailer import DispatchLog, Mailer


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_dispatch_log(request: Request) -> DispatchLog:
    return request.app.state.dispatch_log
