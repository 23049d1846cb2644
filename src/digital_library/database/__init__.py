"""
Database package for the Digital Library lending engine.

This package provides:
- SQLAlchemy schema definitions (schema.py)
- Session management and error translation (session.py)
- Repositories returning frozen Pydantic entities
- The ``UnitOfWork`` that gives each workflow a single commit
- Demo seed data (seed.py)
"""

from .book_repository import BookRepository
from .loan_repository import LoanRepository
from .repository import BaseRepository
from .reservation_repository import ReservationRepository
from .schema import Base
from .seed import DEMO_BOOKS, DEMO_USERS, seed_demo_data
from .session import (
    DatabaseManager,
    get_db_manager,
    reset_db_manager,
    safe_commit,
    safe_flush,
    safe_query,
)
from .unit_of_work import UnitOfWork
from .user_repository import UserRepository

__all__ = [
    "DEMO_BOOKS",
    "DEMO_USERS",
    "Base",
    "BaseRepository",
    "BookRepository",
    "DatabaseManager",
    "LoanRepository",
    "ReservationRepository",
    "UnitOfWork",
    "UserRepository",
    "get_db_manager",
    "reset_db_manager",
    "safe_commit",
    "safe_flush",
    "safe_query",
    "seed_demo_data",
]
