from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .functions import register_sqlite_functions

DEFAULT_POOL_SIZE = 5
DEFAULT_MAX_OVERFLOW = 0
DEFAULT_POOL_TIMEOUT_SECONDS = 30.0


def _is_sqlite_memory(url) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def get_engine(
    database_url: str,
    pool_size: int = DEFAULT_POOL_SIZE,
    max_overflow: int = DEFAULT_MAX_OVERFLOW,
    pool_timeout: float = DEFAULT_POOL_TIMEOUT_SECONDS,
) -> Engine:
    """
    Create an engine backed by a bounded connection pool.

    Each request checks out exactly one connection for its lifetime. When
    ``pool_size + max_overflow`` connections are in use, checkout blocks for
    ``pool_timeout`` seconds and then raises ``sqlalchemy.exc.TimeoutError``,
    which the store reports as service-unavailable.

    In-memory SQLite uses a single shared connection so every session sees
    the same database.
    """
    url = make_url(database_url)
    if _is_sqlite_memory(url):
        engine = create_engine(
            url,
            future=True,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(
            url,
            future=True,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_pre_ping=True,
        )

    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", register_sqlite_functions)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@contextmanager
def session_context(engine: Engine) -> Generator[Session, None, None]:
    """
    Context manager for one request's session.

    The engine is read-only from this package's point of view, so the
    session is rolled back on error and always closed, returning its
    connection to the pool.

    Usage:
        with session_context(engine) as session:
            response = list_factories(session, limit=10)
    """
    session = get_session_factory(engine)()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
