"""
Database configuration.

Async SQLAlchemy engine and session factory shared by the application.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings


def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """
    Create async engine.

    Args:
        database_url: Database URL (default: settings.database_url)
        echo: Log SQL statements (default: settings.database_echo)

    Returns:
        AsyncEngine instance
    """
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.database_echo if echo is None else echo,
        pool_pre_ping=True,
    )


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory bound to the given engine."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine()
async_session_maker = create_session_maker(engine)
