import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

# Bound to an engine by init_engine() at process start
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

Base = declarative_base()

_engine: Optional[Engine] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with the dialect-specific options this service needs"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    engine = create_engine(
        database_url,
        connect_args=connect_args,
        echo=echo,
        pool_pre_ping=True,
    )

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def init_engine(database_url: Optional[str] = None) -> Engine:
    """Open the store handle. Called once from the application lifespan."""
    global _engine

    url = database_url or settings.database_url
    if _engine is not None:
        return _engine

    _engine = build_engine(url)
    SessionLocal.configure(bind=_engine)
    logger.info(f"Database engine initialised ({_engine.dialect.name})")
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database engine is not initialised")
    return _engine


def dispose_engine() -> None:
    """Close pooled connections at shutdown"""
    global _engine

    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(engine: Optional[Engine] = None):
    """Create all tables in the database"""
    from . import models  # noqa: F401  (registers mappers)

    Base.metadata.create_all(bind=engine or get_engine())
