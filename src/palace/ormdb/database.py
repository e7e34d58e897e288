"""Database configuration and session management."""

from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.logging import get_logger
from ..config.settings import get_settings

logger = get_logger(__name__)

# Base class for all ORM models
Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _configure_sqlite(dbapi_connection, connection_record):
    """Enable foreign keys and WAL journaling on SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_engine_for_url(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for ``database_url`` with per-backend pool settings."""
    settings = get_settings()
    is_sqlite = database_url.startswith("sqlite")

    logger.info(
        "Creating database engine",
        url_type="sqlite" if is_sqlite else "other",
        echo_sql=echo,
    )

    engine_kwargs = {
        "echo": echo,
        "pool_pre_ping": settings.database_pool_pre_ping,
    }

    if is_sqlite:
        engine_kwargs.update(
            {
                "connect_args": {"check_same_thread": False, "timeout": 30},
                "poolclass": StaticPool,
            }
        )
    else:
        engine_kwargs.update(
            {
                "pool_recycle": settings.database_pool_recycle,
                "pool_size": 5,
                "max_overflow": 10,
            }
        )

    engine = create_engine(database_url, **engine_kwargs)

    if is_sqlite:
        event.listen(engine, "connect", _configure_sqlite)

    return engine


def get_engine() -> Engine:
    """Get the database engine, creating it from settings if necessary."""
    global _engine

    if _engine is None:
        settings = get_settings()
        _engine = create_engine_for_url(
            settings.get_database_url(), echo=settings.database_echo_sql
        )
        logger.info("Database engine initialized")

    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory, creating it if necessary."""
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
            expire_on_commit=False,
        )
        logger.debug("Session factory created")

    return _SessionLocal


def get_session() -> Generator[Session, None, None]:
    """
    Get a database session with automatic cleanup.

    Yields:
        Session: SQLAlchemy session committed on success, rolled back on error
    """
    session = get_session_factory()()

    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error("Database session rolled back", error=str(e), exc_info=True)
        raise
    finally:
        session.close()


def get_session_sync() -> Session:
    """
    Get a database session.

    Returns:
        Session: SQLAlchemy session (caller responsible for closing)
    """
    return get_session_factory()()


def create_tables(engine: Optional[Engine] = None) -> None:
    """Create all database tables."""
    from . import models  # noqa: F401  registers tables on Base.metadata

    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("Database tables created successfully")


def drop_tables(engine: Optional[Engine] = None) -> None:
    """Drop all database tables."""
    logger.warning("Dropping all database tables")
    Base.metadata.drop_all(bind=engine or get_engine())


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns:
        dict: Health status, with the error text when unhealthy
    """
    try:
        with get_session_factory()() as session:
            healthy = session.execute(text("SELECT 1")).scalar() == 1
        return {"status": "healthy", "connectivity": healthy}
    except Exception as e:
        logger.error("Database health check failed", error=str(e), exc_info=True)
        return {"status": "unhealthy", "error": str(e), "connectivity": False}
