"""
Module: payroll_kernel.db.engine
Responsibility: build engines and session factories, and wrap a unit of
    work that services open for themselves.

Nothing here is cached at module level.  The host builds an engine, derives
a factory from it and hands the factory to PayrollProcessor; tests do the
same against a throwaway SQLite file.

PostgreSQL connections run at READ COMMITTED.  Two runs for the same
employee and period are kept apart by the partial unique index on
payroll_records, not by the isolation level.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from payroll_kernel.logging_config import get_logger

logger = get_logger("db.engine")

# QueuePool settings for server databases; SQLite ignores pool sizing.
DEFAULT_POOL_OPTIONS = {
    "pool_size": 20,
    "max_overflow": 10,
    "pool_timeout": 30,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
}


def _sqlite_connect(dbapi_connection, _connection_record) -> None:
    # pysqlite's implicit BEGIN breaks SAVEPOINT; _sqlite_begin emits it instead.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _sqlite_begin(connection) -> None:
    connection.exec_driver_sql("BEGIN")


def create_engine_from_url(
    database_url: str,
    *,
    echo: bool = False,
    **pool_options,
) -> Engine:
    """
    Engine for ``database_url``.

    ``pool_options`` override DEFAULT_POOL_OPTIONS and only apply to
    non-SQLite URLs.  SQLite connections get real transactions (an explicit
    BEGIN per unit of work) so that ``Session.begin_nested()`` savepoints
    roll back and release the way they do on PostgreSQL.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=echo)
        event.listen(engine, "connect", _sqlite_connect)
        event.listen(engine, "begin", _sqlite_begin)
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            isolation_level="READ COMMITTED",
            **{**DEFAULT_POOL_OPTIONS, **pool_options},
        )

    logger.info("engine_initialized", extra={"dialect": engine.dialect.name})
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Sessions keep loaded attributes after commit (expire_on_commit off)."""
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    One unit of work: commit when the block finishes, roll back and re-raise
    when it does not.  The session is always closed.

        with session_scope(factory) as session:
            session.add(record)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _metadata():
    # Importing the models package registers every table on Base.metadata.
    from payroll_kernel import models  # noqa: F401
    from payroll_kernel.db.base import Base

    return Base.metadata


def create_tables(engine: Engine) -> None:
    metadata = _metadata()
    metadata.create_all(engine)
    logger.info("tables_created", extra={"table_count": len(metadata.tables)})


def drop_tables(engine: Engine) -> None:
    """Drop every payroll table. Test teardown only."""
    _metadata().drop_all(engine)
