"""
Database engine and session management for the relational backend.
Handles async engine creation, session factories and schema creation with SQLAlchemy.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, DateTime, event, text
import json
import logging
import uuid
from datetime import datetime

logger = logging.getLogger(__name__)


def _json_serializer(value) -> str:
    # Keep non-ASCII text readable in JSON columns
    return json.dumps(value, ensure_ascii=False)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    # SQLite's built-in lower() only folds ASCII letters
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def new_id() -> str:
    """Generate an opaque record identifier."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """
    Base class for all database models.
    Includes common fields: id, created_at, updated_at.
    Timestamps are assigned by the storage layer, not the database server,
    so that every backend produces the same values.
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False
    )

    def __repr__(self) -> str:
        """String representation of the model."""
        return f"<{self.__class__.__name__}(id={self.id})>"


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Pool options are only applied for server databases; SQLite uses
    SQLAlchemy's default pool for aiosqlite.

    SQLite connections get a Unicode-aware lower() so case-insensitive
    matching folds accented letters the same way Python does.
    """
    options = {
        "echo": echo,
        "json_serializer": _json_serializer,
    }
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=3600,
            pool_timeout=30,
        )

    engine = create_async_engine(database_url, **options)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _register_sqlite_functions)
    logger.debug(f"Created database engine for {engine.url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all database tables that do not exist yet."""
    # Register the mapped tables on Base.metadata
    from catalog import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")


async def check_database_connection(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """
    Test database connectivity.
    Returns True if connection is successful, False otherwise.
    """
    try:
        async with session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            logger.info("Database connection successful")
            return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
