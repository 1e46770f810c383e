"""
Module: stock_kernel.db.engine
Responsibility: Owns the process-wide engine and session factory, and the
    commit-or-rollback scopes every caller writes through. The kernel, the
    import pipeline and the scripts all connect here.
Architecture position: Kernel > DB. May import from db/base.py. MUST NOT
    import from services/ or selectors/ (create_tables imports models/ to
    populate the metadata).

Backends:
    postgresql  QueuePool, READ COMMITTED. Services lock the inventory row
                they mutate (SELECT ... FOR UPDATE).
    sqlite      Tests and local runs. In-memory databases share one
                connection (StaticPool); foreign keys are switched on.

Invariants enforced:
    - Services never commit. transaction_scope()/session_scope() are the
      only commit/rollback owners.

Failure modes:
    - RuntimeError from get_engine/get_session/get_session_factory before
      init_engine_from_url().
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from stock_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database not initialized; call init_engine_from_url() first."


def _sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_sqlite(url: URL) -> bool:
    return url.database in (None, "", ":memory:")


def _engine_options(url: URL, **pool: Any) -> dict[str, Any]:
    if url.get_backend_name() == "sqlite":
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(url):
            options["poolclass"] = StaticPool
        return options
    return {"poolclass": QueuePool, "isolation_level": "READ COMMITTED", **pool}


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Calling it again replaces the previous engine without disposing it; use
    reset_engine() first when that matters. Pool arguments apply to
    PostgreSQL only.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    dialect = url.get_backend_name()
    _engine = create_engine(
        url,
        echo=echo,
        **_engine_options(
            url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
        ),
    )
    if dialect == "sqlite":
        event.listen(_engine, "connect", _sqlite_pragmas)

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": dialect,
            "database": url.database,
            "pool_size": None if dialect == "sqlite" else pool_size,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that open one transaction per unit of work (imports, sweeps)."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


def get_session() -> Session:
    """A new session; the caller commits and closes it."""
    return get_session_factory()()


@contextmanager
def transaction_scope(
    factory: sessionmaker[Session],
) -> Generator[Session, None, None]:
    """
    Run the block in one transaction on a fresh session from ``factory``.

    Commits when the block finishes, rolls back and re-raises when it
    raises. The session is closed either way.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    transaction_scope() over the configured factory.

        with session_scope() as session:
            MovementService(session, clock).post_movement(command, actor_id)
    """
    with transaction_scope(get_session_factory()) as session:
        yield session


def create_tables() -> None:
    """Create every table and register the ORM immutability listeners."""
    from stock_kernel.db.base import Base
    from stock_kernel.db.immutability import register_immutability_listeners
    from stock_kernel.models import import_all_models

    import_all_models()
    Base.metadata.create_all(get_engine())
    register_immutability_listeners()
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every table. Tests and local resets only."""
    from stock_kernel.db.base import Base
    from stock_kernel.models import import_all_models

    import_all_models()
    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
