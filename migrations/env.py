from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from notesapp.config import get_settings
from notesapp.models import Base

target_metadata = Base.metadata

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _sync_url() -> str:
    # Settings reads .env and derives the psycopg URL from an asyncpg DATABASE_URL
    s = get_settings()
    url = s.SYNC_DATABASE_URL or s.DATABASE_URL
    if "+aiosqlite" in url:
        url = url.replace("+aiosqlite", "", 1)
    return url


config.set_main_option("sqlalchemy.url", _sync_url())


def run_migrations_offline():
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
