"""Tests for application configuration."""
from notesapp.config import Settings
from notesapp.services.mailer import ConsoleMailer, SmtpMailer, build_mailer, render_otp_email


class TestSettings:

    def test_sync_url_derived_from_asyncpg(self) -> None:
        s = Settings(_env_file=None, DATABASE_URL="postgresql+asyncpg://u:p@db/notes")
        assert s.SYNC_DATABASE_URL == "postgresql+psycopg://u:p@db/notes"

    def test_explicit_sync_url_wins(self) -> None:
        s = Settings(
            _env_file=None,
            DATABASE_URL="postgresql+asyncpg://u:p@db/notes",
            SYNC_DATABASE_URL="postgresql://other/notes",
        )
        assert s.SYNC_DATABASE_URL == "postgresql://other/notes"

    def test_otp_expiry_defaults_to_ten_minutes(self, monkeypatch) -> None:
        monkeypatch.delenv("OTP_EXPIRY_MINUTES", raising=False)
        assert Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite://").OTP_EXPIRY_MINUTES == 10

    def test_dev_tools_never_mounted_in_prod(self) -> None:
        prod = Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite://", ENV="prod", DEV_TOOLS_ENABLED=True)
        dev = Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite://", ENV="dev", DEV_TOOLS_ENABLED=True)
        off = Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite://", ENV="dev", DEV_TOOLS_ENABLED=False)
        assert not prod.dev_tools_mounted
        assert dev.dev_tools_mounted
        assert not off.dev_tools_mounted


class TestMailerSelection:

    def test_console_mailer_without_credentials_outside_prod(self) -> None:
        s = Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite://", ENV="dev", EMAIL_USER=None, EMAIL_PASS=None)
        assert isinstance(build_mailer(s), ConsoleMailer)

    def test_smtp_mailer_in_prod_even_without_credentials(self) -> None:
        s = Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite://", ENV="prod", EMAIL_USER=None, EMAIL_PASS=None)
        mailer = build_mailer(s)
        assert isinstance(mailer, SmtpMailer)
        assert not mailer.enabled

    def test_smtp_mailer_with_credentials(self) -> None:
        s = Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite://", ENV="dev", EMAIL_USER="me@x.com", EMAIL_PASS="pw")
        assert isinstance(build_mailer(s), SmtpMailer)

    def test_otp_email_mentions_code_and_expiry(self) -> None:
        subject, text, html = render_otp_email("482913", 7)
        assert subject == "Your Verification Code"
        assert "482913" in text and "482913" in html
        assert "expire in 7 minutes" in text and "expire in 7 minutes" in html
