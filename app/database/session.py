"""
WasteCollect Server - Database Session
"""
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import select, event
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings

logger = logging.getLogger(__name__)

# Async engine
engine = create_async_engine(
    settings.db_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)


def enable_sqlite_savepoints(async_engine) -> None:
    """
    pysqlite defers BEGIN until the first write, which breaks SAVEPOINT
    (begin_nested). Let SQLAlchemy emit BEGIN itself.
    """
    @event.listens_for(async_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

# Base for models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    Request-scoped session: one HTTP call is one unit of work.
    Commits when the endpoint returns, rolls back when it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def ensure_admin_exists(session: AsyncSession) -> None:
    """
    Creates the bootstrap administrator when no ADMIN user exists yet.
    Credentials come from ADMIN_EMAIL / ADMIN_PASSWORD.
    """
    from app.core.security import get_password_hash
    from app.models import User, Role

    result = await session.execute(
        select(User.id).where(User.role == Role.ADMIN.value).limit(1)
    )
    if result.scalar_one_or_none():
        logger.info("Administrator already present")
        return

    admin = User(
        first_name="System",
        last_name="Administrator",
        email=settings.ADMIN_EMAIL,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        role=Role.ADMIN.value,
        department="Operations",
    )
    session.add(admin)
    await session.commit()
    logger.warning(f"Bootstrap administrator created: {settings.ADMIN_EMAIL}")


async def init_db():
    """Creates the tables and the bootstrap administrator"""
    import app.models  # noqa: F401  registers every table on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        try:
            await ensure_admin_exists(session)
        except SQLAlchemyError as e:
            logger.error(f"Failed to bootstrap administrator: {e}")
            await session.rollback()
