"""
Database session management for the Digital Library lending engine.

Sessions are short-lived: one per workflow call, opened by a
``UnitOfWork`` and closed when it exits. Every database error that leaves
this package is wrapped in ``RepositoryError`` so the services only ever
see the library's own error taxonomy.
"""

import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from ..config import get_config
from ..errors import ConcurrentModification, RepositoryError
from .schema import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Owns the engine and session factory for one database.

    Engine and factory are created lazily so constructing a manager never
    touches the database.
    """

    def __init__(self, database_url: str | None = None):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. If None, uses the configured
                SQLite file.
        """
        if database_url is None:
            database_url = get_config().get_database_url()
            logger.info("Using SQLite database at: %s", database_url)

        self.database_url = database_url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.database_url.startswith("sqlite"):
                self._engine = create_engine(
                    self.database_url,
                    # Single shared connection avoids "database is locked" on SQLite
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                    echo=False,
                )

                @event.listens_for(self._engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()
            else:
                self._engine = create_engine(
                    self.database_url,
                    pool_size=10,
                    max_overflow=20,
                    pool_pre_ping=True,
                    echo=False,
                )

            logger.info("Database engine created: %s", self._engine.url)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for database operations.

        ```python
        with db_manager.session_scope() as session:
            session.add(row)
        # committed, or rolled back if the block raised
        ```
        """
        session = self.create_session()
        try:
            yield session
            safe_commit(session, "session scope")
            logger.debug("Database transaction committed successfully")
        except Exception:
            logger.exception("Database error, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self, drop_existing: bool = False) -> None:
        """
        Create the schema.

        Args:
            drop_existing: If True, drop all tables before creating
        """
        engine = self.engine

        if drop_existing:
            logger.warning("Dropping all existing tables...")
            Base.metadata.drop_all(bind=engine)

        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialization complete")

    def verify_connection(self) -> bool:
        """
        Verify the database connection is working.

        Returns:
            True if connection is successful, False otherwise
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False
        logger.info("Database connection verified")
        return True

    def close(self) -> None:
        """Dispose of the engine. Called on server shutdown."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_db_manager(database_url: str | None = None) -> DatabaseManager:
    """
    Get the global database manager instance.

    Args:
        database_url: Database URL (only used on first call)
    """
    global _db_manager  # noqa: PLW0603 - Singleton pattern for database manager

    if _db_manager is None:
        _db_manager = DatabaseManager(database_url)

    return _db_manager


def reset_db_manager() -> None:
    """Close and forget the global manager (useful for testing)."""
    global _db_manager  # noqa: PLW0603
    if _db_manager is not None:
        _db_manager.close()
    _db_manager = None


def safe_flush(session: Session, operation: str) -> None:
    """
    Flush pending writes, translating database errors.

    Raises:
        ConcurrentModification: If a versioned row changed since it was read
        RepositoryError: On any other database error
    """
    try:
        session.flush()
    except StaleDataError as e:
        raise ConcurrentModification(f"Concurrent update detected during '{operation}'") from e
    except SQLAlchemyError as e:
        raise RepositoryError(f"Database operation '{operation}' failed: {e!s}") from e


def safe_commit(session: Session, operation: str) -> None:
    """
    Commit a session, rolling back and translating database errors.

    Raises:
        ConcurrentModification: If a versioned row changed since it was read
        RepositoryError: On any other database error
    """
    try:
        session.commit()
    except StaleDataError as e:
        session.rollback()
        raise ConcurrentModification(f"Concurrent update detected during '{operation}'") from e
    except SQLAlchemyError as e:
        session.rollback()
        raise RepositoryError(f"Database operation '{operation}' failed: {e!s}") from e


T = TypeVar("T")


def safe_query(session: Session, query_func: Callable[[Session], T], error_msg: str) -> T:
    """
    Execute a query, translating database errors.

    Args:
        session: The database session
        query_func: Function that performs the query
        error_msg: Prefix for the raised error message

    Raises:
        RepositoryError: If the query fails
    """
    try:
        return query_func(session)
    except SQLAlchemyError as e:
        logger.exception("Query failed")
        raise RepositoryError(f"{error_msg}: Database query failed") from e
