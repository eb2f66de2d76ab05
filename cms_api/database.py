from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase, Session

from cms_api.config import settings

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@event.listens_for(Session, "before_flush")
def _stamp_timestamps(session, flush_context, instances):
    """
    Stamp ``created_at`` / ``updated_at`` on every write.

    Registered on the ``Session`` class so it applies to the sync session
    wrapped by every ``AsyncSession``, including the test session factory.
    Rows that do not declare the columns are left alone.
    """
    now = utcnow()
    for obj in session.new:
        if hasattr(obj, "created_at"):
            obj.created_at = now
        if hasattr(obj, "updated_at"):
            obj.updated_at = now
    for obj in session.dirty:
        if hasattr(obj, "updated_at") and session.is_modified(obj, include_collections=False):
            obj.updated_at = now


async def get_db():
    # Services own the commit; the dependency only guarantees rollback
    # if something escapes them.
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
