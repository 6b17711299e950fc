import logging, time
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy import text, event
from contextlib import asynccontextmanager
from .config import get_settings

log = logging.getLogger("notesapp.sql")
S = get_settings()

engine = create_async_engine(S.DATABASE_URL, pool_pre_ping=True)

SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


def _is_sqlite() -> bool:
    return engine.dialect.name == "sqlite"


if _is_sqlite():
    # notes.user_id ON DELETE CASCADE is only enforced with this pragma
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_foreign_keys(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


async def _ping() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@asynccontextmanager
async def lifespan_db(_app=None):
    try:
        await _ping()
        log.info("database_ready", extra={"extra": {"dialect": engine.dialect.name}})
        yield
    finally:
        await engine.dispose()


async def db_health() -> bool:
    try:
        await _ping()
    except Exception:
        log.warning("db_health_failed", exc_info=True)
        return False
    return True


async def get_db() -> AsyncSession:
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@event.listens_for(engine.sync_engine, "before_cursor_execute")
def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    context._query_start_time = time.perf_counter()


@event.listens_for(engine.sync_engine, "after_cursor_execute")
def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    started = getattr(context, "_query_start_time", None)
    if started is None:
        return
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    if elapsed_ms >= S.SLOW_QUERY_MS:
        log.warning("slow_query", extra={"extra": {"elapsed_ms": elapsed_ms, "sql": statement[:200]}})
