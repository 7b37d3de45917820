"""
Database setup - engine, session factory and transaction scope.

Every mutation in the service layer runs inside ``transaction()`` so that a
failure part way through (a foreign recipe during list generation, a lost
connection) leaves nothing behind. Driver level timeouts and connection
failures are reported as TransientStoreError, which callers may retry.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.exc import DBAPIError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from shoplist.config import get_settings
from shoplist.services.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


def _engine_options(url: str, timeout: int) -> dict:
    """Driver specific options that bound how long a store call may wait."""
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
        # An in-memory database only exists on its one connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": True,
        "pool_timeout": timeout,
        "connect_args": {"timeout": timeout},
    }


settings = get_settings()

engine = create_engine(
    settings.database_url,
    **_engine_options(settings.database_url, settings.db_timeout_seconds)
)
if settings.database_url.startswith("sqlite"):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the transaction
    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_begin(connection):
        connection.exec_driver_sql("BEGIN")

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
Base = declarative_base()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a request scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Commit everything done in the block, or nothing.

    Raises:
        TransientStoreError: the store timed out or dropped the connection
    """
    try:
        yield db
        db.commit()
    except (OperationalError, PoolTimeoutError) as e:
        db.rollback()
        logger.error(f"Store unavailable, transaction rolled back: {e}")
        raise TransientStoreError("Storage is temporarily unavailable, please retry") from e
    except DBAPIError as e:
        db.rollback()
        if e.connection_invalidated:
            logger.error(f"Store connection lost, transaction rolled back: {e}")
            raise TransientStoreError("Storage connection was lost, please retry") from e
        raise
    except Exception:
        db.rollback()
        raise


def init_db() -> None:
    """Create any missing tables."""
    # Entities must be registered on Base before create_all
    import shoplist.models.entities  # noqa: F401

    Base.metadata.create_all(bind=engine)
