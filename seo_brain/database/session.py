"""
Database Engine and Sessions

PostgreSQL when DATABASE_URL is set, otherwise a local SQLite file.
Repository functions are synchronous and are called through
asyncio.to_thread by the generator and optimizer, so SQLite connections
must be usable across threads.
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from seo_brain.utils.config import get_settings

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = "seo_brain_dev.db"

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_database_url() -> str:
    """DATABASE_URL (postgres:// accepted) or the SQLite fallback."""
    url = get_settings().DATABASE_URL or os.getenv("DATABASE_URL")
    if url:
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://"):]
        return url

    sqlite_path = os.getenv("SQLITE_PATH", DEFAULT_SQLITE_PATH)
    logger.warning(f"No DATABASE_URL set, using SQLite file {sqlite_path}")
    return f"sqlite:///{sqlite_path}"


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str) -> Engine:
    echo = os.getenv("SQL_DEBUG", "false").lower() == "true"

    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False}, echo=echo)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        logger.info(f"SQLite engine ready ({url})")
        return engine

    # Pool sized for one API process plus a batch of concurrent page saves
    engine = create_engine(
        url,
        pool_size=10,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=echo,
    )
    logger.info("PostgreSQL engine ready")
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = _build_engine(get_database_url())
    return _engine


def configure_database(url: str) -> Engine:
    """Use a specific database (tests, scripts with an explicit URL)."""
    reset_database_state()
    global _engine
    _engine = _build_engine(url)
    return _engine


def reset_database_state():
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def _session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _SessionLocal


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    One unit of work: commit on success, roll back on any exception.

    Usage:
        with get_db_context() as db:
            db.add(page)
    """
    db = _session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(drop_all: bool = False) -> None:
    """Create missing tables. drop_all wipes every table first."""
    engine = get_engine()
    if drop_all:
        logger.warning("Dropping all SEO Brain tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


def check_db_connection() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
