"""Test configuration and fixtures for the Digital Library lending engine.

1. Isolated test databases - each test gets a fresh SQLite file with the
   demo catalog and users loaded
2. Configuration overrides - a test-specific ``LibraryConfig``
3. A fixed clock - time-based rules are evaluated against a known instant
4. A recording notification sink - tests inspect what would have been sent
"""

import os
from collections.abc import Generator
from datetime import date, datetime, timedelta
from pathlib import Path

import logfire
import pytest
from sqlalchemy.orm import Session

from digital_library.config import LibraryConfig, reset_config
from digital_library.database import DatabaseManager, UnitOfWork, seed_demo_data
from digital_library.models import Book, BookFormat, BookStatus, MembershipType, User
from digital_library.services import Library, set_library

START = datetime(2024, 3, 1, 10, 0, 0)


class FixedClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingSink:
    """Notification sink that records every call.

    Set ``deliver`` to False to make the sink report failure, or
    ``error`` to an exception to make it raise.
    """

    def __init__(self):
        self.sent: list[tuple] = []
        self.deliver = True
        self.error: Exception | None = None

    def _record(self, *call) -> bool:
        if self.error is not None:
            raise self.error
        if self.deliver:
            self.sent.append(call)
        return self.deliver

    def send_reservation_confirmation(self, user_id: str, book_title: str) -> bool:
        return self._record("reservation_confirmed", user_id, book_title)

    def send_reservation_ready(self, user_id: str, book_title: str) -> bool:
        return self._record("reservation_ready", user_id, book_title)

    def send_overdue_notice(self, user_id: str, book_title: str, days_overdue: int) -> bool:
        return self._record("loan_overdue", user_id, book_title, days_overdue)


@pytest.fixture(scope="session", autouse=True)
def quiet_logfire():
    """Keep spans local during tests."""
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    reset_config()
    set_library(None)
    yield
    set_library(None)
    reset_config()


# === Test Database Fixtures ===


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_library.db"


@pytest.fixture
def test_config(test_db_path: Path) -> LibraryConfig:
    return LibraryConfig(
        server_name="test-digital-library",
        server_version="0.0.1-test",
        database_path=test_db_path,
        debug=True,
        log_level="DEBUG",
    )


@pytest.fixture
def db_manager(test_config: LibraryConfig) -> Generator[DatabaseManager, None, None]:
    """Database manager on a fresh file, schema created and demo data loaded."""
    manager = DatabaseManager(test_config.get_database_url())
    manager.init_database()
    with manager.session_scope() as session:
        seed_demo_data(session)
    yield manager
    manager.close()


@pytest.fixture
def db_session(db_manager: DatabaseManager) -> Generator[Session, None, None]:
    """A plain session for inspecting what the workflows committed."""
    session = db_manager.create_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def uow_factory(db_manager: DatabaseManager):
    return lambda: UnitOfWork(db_manager.session_factory)


# === Workflow Fixtures ===


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def library(uow_factory, test_config, sink, clock) -> Library:
    return Library(uow_factory, config=test_config, sink=sink, clock=clock)


@pytest.fixture
def add_book(uow_factory):
    """Insert a book; keyword arguments override the defaults."""

    def add(book_id: str, **fields) -> Book:
        values = {
            "id": book_id,
            "title": f"Test Book {book_id}",
            "author": "Test Author",
            "isbn": f"978-{int(book_id.encode().hex(), 16) % 10**10:010d}",
            "format": BookFormat.PHYSICAL,
            "status": BookStatus.AVAILABLE,
            "total_copies": 1,
            "available_copies": 1,
            "published_date": date(2000, 1, 1),
        }
        values.update(fields)
        with uow_factory() as uow:
            return uow.books.save(Book(**values))

    return add


@pytest.fixture
def add_user(uow_factory):
    """Insert a user; keyword arguments override the defaults."""

    def add(user_id: str, **fields) -> User:
        values = {
            "id": user_id,
            "email": f"user{user_id}@example.com",
            "name": f"Test User {user_id}",
            "membership": MembershipType.FREE,
            "created_at": START - timedelta(days=30),
        }
        values.update(fields)
        with uow_factory() as uow:
            return uow.users.save(User(**values))

    return add


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Environment without DIGITAL_LIBRARY_* variables."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("DIGITAL_LIBRARY_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)
