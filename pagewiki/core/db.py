from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from pagewiki.content_tree import HierarchyError
from pagewiki.core.config import database_timeout_s, database_url
from pagewiki.core.errors import APIError
from pagewiki.core.schema import Base


logger = logging.getLogger("pagewiki")

# In-process cache: database url -> (engine, session factory)
_ENGINES: dict[str, tuple[Engine, sessionmaker[Session]]] = {}


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str) -> Engine:
    timeout = database_timeout_s()
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout},
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True, pool_timeout=timeout)


def _factory() -> tuple[Engine, sessionmaker[Session]]:
    url = database_url()
    if url not in _ENGINES:
        engine = _build_engine(url)
        _ENGINES[url] = (engine, sessionmaker(bind=engine, expire_on_commit=False))
    return _ENGINES[url]


def get_engine() -> Engine:
    return _factory()[0]


def open_session() -> Session:
    return _factory()[1]()


def init_db() -> None:
    Base.metadata.create_all(get_engine())


def ping() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("page store ping failed")
        return False
    return True


def get_session() -> Iterator[Session]:
    session = open_session()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit on success, roll back on any exception and re-raise it."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Translate store failures into the API error taxonomy.

    The raw driver message is logged, never returned to the caller.
    """
    try:
        yield
    except APIError:
        raise
    except HierarchyError:
        logger.exception("corrupted page hierarchy during %s", action)
        raise APIError(500, "database_error", "Page hierarchy is inconsistent")
    except StaleDataError:
        logger.warning("concurrent modification during %s", action)
        raise APIError(409, "conflict", "Page was modified concurrently, retry the operation")
    except IntegrityError:
        logger.warning("integrity violation during %s", action, exc_info=True)
        raise APIError(409, "conflict", "Page data conflicts with an existing page")
    except OperationalError:
        logger.exception("page store unavailable during %s", action)
        raise APIError(503, "database_error", f"Failed to {action}, retry later")
    except SQLAlchemyError:
        logger.exception("page store failure during %s", action)
        raise APIError(500, "database_error", f"Failed to {action}")
