"""Database session management."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from studydesk.config import Settings


def create_session_factory(settings: Settings) -> async_sessionmaker[AsyncSession] | None:
    """Create the note metadata session factory, or None when no database is configured."""
    url = settings.notes_database_url_async
    if url is None:
        return None

    connect_args = {"ssl": "require"} if settings.notes_database_requires_ssl else {}
    engine = create_async_engine(
        url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args=connect_args,
    )
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
