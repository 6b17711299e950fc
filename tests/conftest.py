import os
import tempfile
import uuid
from datetime import datetime, timezone
from typing import List, Optional

# Settings are read once at import time; point them at a throwaway SQLite file
# before anything from notesapp is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="notesapp-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["ENV"] = "test"
os.environ["DEV_TOOLS_ENABLED"] = "true"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
import pytest_asyncio

from notesapp.db import engine, SessionLocal
from notesapp.errors import UpstreamAuthError
from notesapp.models import Base
from notesapp.repos import users as users_repo
from notesapp.services.google_identity import ExternalIdentity
from notesapp.services.mailer import DispatchLog, DispatchRecord


class FakeMailer:
    """Records every OTP instead of sending it; flip `fail` to simulate a dead transport."""

    def __init__(self, dispatch_log: Optional[DispatchLog] = None) -> None:
        self.sent: List[dict] = []
        self.fail = False
        self._dispatch_log = dispatch_log

    async def send_otp(self, *, to: str, code: str, expiry_minutes: int) -> bool:
        if self.fail:
            return False
        self.sent.append({"to": to, "code": code, "expiry_minutes": expiry_minutes})
        if self._dispatch_log is not None:
            self._dispatch_log.record(DispatchRecord(
                to=to, subject="Your Verification Code", message_id=f"<{uuid.uuid4().hex}@test>",
                preview_url="https://preview.test/message/1", sent_at=datetime.now(timezone.utc),
            ))
        return True

    def last_code(self, to: str) -> str:
        return [m["code"] for m in self.sent if m["to"] == to][-1]


class FakeGoogleVerifier:
    """Maps known token strings to identities; anything else is rejected."""

    def __init__(self) -> None:
        self.tokens: dict = {}

    async def verify(self, token: str) -> ExternalIdentity:
        identity = self.tokens.get(token)
        if identity is None:
            raise UpstreamAuthError("Invalid Google token")
        return identity


# Fresh schema per test, on the SAME loop as the test function; dispose the
# engine afterwards so no pooled connection leaks into the next loop.
@pytest_asyncio.fixture(autouse=True, loop_scope="function")
async def _db_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def db():
    async with SessionLocal() as s:
        yield s


@pytest.fixture
def dispatch_log() -> DispatchLog:
    return DispatchLog()


@pytest.fixture
def mailer(dispatch_log) -> FakeMailer:
    return FakeMailer(dispatch_log)


@pytest.fixture
def google_verifier() -> FakeGoogleVerifier:
    return FakeGoogleVerifier()


@pytest.fixture
def app(mailer, google_verifier, dispatch_log):
    from notesapp.main import create_app
    return create_app(mailer=mailer, identity_verifier=google_verifier, dispatch_log=dispatch_log)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ---------- helpers ----------
async def mk_user(db, email: str, name: str = "") -> uuid.UUID:
    u = await users_repo.create(db, email=email, name=name)
    await db.commit()
    return u.id


async def sign_in(client: httpx.AsyncClient, mailer: FakeMailer, email: str, name: str = "User") -> dict:
    """Run send-otp + verify-otp over HTTP and return the verify response body."""
    r = await client.post("/api/auth/send-otp", json={"email": email})
    assert r.status_code == 200, r.text
    r = await client.post(
        "/api/auth/verify-otp",
        json={"email": email, "otp": mailer.last_code(email), "name": name},
    )
    assert r.status_code == 200, r.text
    return r.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
