"""
Database Session
Engine and session factory construction for the product store.
"""

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite connections are shared between the sync worker thread and the
    request threadpool, and run in WAL mode so readers never wait on a
    batch commit. Every transaction issues a real BEGIN, so the reads in
    one transaction share a snapshot.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log emitted SQL

    Returns:
        Configured engine
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()
            # Let SQLAlchemy emit BEGIN itself (below); pysqlite would
            # otherwise run SELECTs outside any transaction.
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_sqlite_transaction(conn):
            # One read transaction pins one WAL snapshot.
            conn.exec_driver_sql("BEGIN")

    else:
        engine = create_engine(
            database_url,
            echo=echo,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,  # Verify connections before using
        )

    logger.info(f"Database engine created: {database_url.split('@')[-1]}")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the engine."""
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)
