"""
Database engine and session management.

The engine (and its connection pool) is process-wide state with an explicit
lifecycle: ``init_engine`` at application startup, ``dispose_engine`` at
shutdown. Request handlers never touch the engine directly; they receive a
session through the ``get_db`` dependency.
"""
from contextlib import contextmanager
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from scanstock.config import settings

Base = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)

engine: Optional[Engine] = None


def _sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_engine(url: Optional[str] = None) -> Engine:
    """
    Create the engine for ``url`` (defaults to ``settings.DATABASE_URL``)
    and bind the session factory to it.
    """
    global engine

    url = url or settings.DATABASE_URL
    if engine is not None:
        dispose_engine()

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory SQLite lives inside one connection; share it.
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs = {
            "pool_pre_ping": True,
            "pool_size": settings.DATABASE_POOL_SIZE,
            "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        }
        if settings.DATABASE_SSL_REQUIRE:
            kwargs["connect_args"] = {"sslmode": "require"}

    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _sqlite_foreign_keys)
    SessionLocal.configure(bind=engine)
    logger.info(f"Database engine ready ({engine.dialect.name})")
    return engine


def get_engine() -> Engine:
    if engine is None:
        raise RuntimeError("Database engine is not initialised; call init_engine() first")
    return engine


def create_tables():
    # Import models so their tables are registered on Base.metadata
    import scanstock.catalog.models  # noqa: F401
    import scanstock.inventory.models  # noqa: F401
    import scanstock.inventory.events.models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def dispose_engine():
    global engine

    if engine is None:
        return
    engine.dispose()
    engine = None
    logger.info("Database engine disposed")


@contextmanager
def atomic(db: Session):
    """
    Run a block as one transaction: commit on success, roll back and
    re-raise on any exception.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_db():
    """
    Dependency function that provides a database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
