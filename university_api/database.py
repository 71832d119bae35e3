import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Tuple
import os

from sqlalchemy import create_engine, event
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from university_api.config import settings

logger = logging.getLogger(__name__)

# Only echo in development mode and when explicitly enabled
echo_sql = settings.debug and os.getenv("SQL_ECHO", "false").lower() == "true"

engine_kwargs = {
    "echo": echo_sql,
    "pool_pre_ping": True,  # Verify connections before use
    "pool_recycle": 3600,   # Recycle connections every hour
}

if settings.database_url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    # In-memory databases must share a single connection
    if settings.database_url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

# Add PostgreSQL-specific optimizations if using PostgreSQL
if "postgresql" in settings.database_url:
    engine_kwargs.update({
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
    })

engine = create_engine(settings.database_url, **engine_kwargs)

if engine.dialect.name == "sqlite":
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class Transaction:
    """Handle yielded by ``transaction``; collects compensating actions."""

    def __init__(self, db: Session):
        self.db = db
        self._compensations: List[Tuple[Callable, tuple]] = []

    def on_failure(self, action: Callable, *args) -> None:
        """Register an action that runs only if the transaction rolls back"""
        self._compensations.append((action, args))

    def compensate(self) -> None:
        for action, args in reversed(self._compensations):
            try:
                action(*args)
            except Exception as e:
                logger.warning(f"Compensating action {action!r} failed: {str(e)}")


@contextmanager
def transaction(db: Session) -> Iterator[Transaction]:
    """
    Run a block of statements as one unit of work.

    Commits when the block finishes; on any exception (including a failing
    commit) rolls back, runs the registered compensations and re-raises.
    """
    tx = Transaction(db)
    try:
        yield tx
        db.commit()
    except Exception:
        db.rollback()
        tx.compensate()
        raise


def create_tables():
    """Create all tables in the database"""
    import university_api.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_tables():
    """Drop all tables in the database"""
    Base.metadata.drop_all(bind=engine)
