"""
Database engine, session factory and declarative base

SQLite (the default for local use and tests) and PostgreSQL are supported.
"""
import logging
import os
from contextlib import contextmanager
from typing import Iterator, List

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker
from app.config import get_settings

logger = logging.getLogger(__name__)


def resolve_database_url(url: str) -> str:
    """Make a relative SQLite path absolute so a different cwd opens the same file"""
    prefix = "sqlite:///"
    if url.startswith(prefix) and not url.startswith(prefix + "/") and url != prefix + ":memory:":
        return prefix + os.path.abspath(url[len(prefix):])
    return url


def _build_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10, pool_recycle=300)

    sqlite_engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,
    )

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        # ON DELETE CASCADE / SET NULL are ignored unless enabled per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = _build_engine(resolve_database_url(get_settings().database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request (scheduler jobs, middleware, scripts)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping() -> bool:
    """True when the database answers a trivial query"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database ping failed: {e}")
        return False


def _missing_column_statements() -> List[str]:
    inspector = inspect(engine)
    statements = []
    for table_name, table in Base.metadata.tables.items():
        if not inspector.has_table(table_name):
            continue
        existing = {c["name"] for c in inspector.get_columns(table_name)}
        for column in table.columns:
            if column.name not in existing:
                column_type = column.type.compile(dialect=engine.dialect)
                statements.append(f"ALTER TABLE {table_name} ADD COLUMN {column.name} {column_type}")
    return statements


def init_db() -> None:
    """
    Create missing tables, then add columns a model gained since its table was created.

    Added columns are always nullable; anything more involved belongs in an
    Alembic revision under alembic/versions.
    """
    # Registers every model on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    statements = _missing_column_statements()
    if not statements:
        return
    with engine.begin() as conn:
        for sql in statements:
            logger.info(f"Auto-migrating: {sql}")
            conn.execute(text(sql))
