"""
Digital Library entity models.

Pydantic models for the four lending entities. All of them are frozen:
state changes go through explicit derive methods that return a new value.

- User: library member with a membership tier
- Book: catalog title with lendable copies
- Loan: a copy lent to a user
- Reservation: a user's place in line for a title
"""

from .book import Book, BookFormat, BookStatus
from .loan import Loan, LoanStatus
from .reservation import ACTIVE_RESERVATION_STATUSES, Reservation, ReservationStatus
from .user import MembershipType, User, UserRole

__all__ = [
    "ACTIVE_RESERVATION_STATUSES",
    "Book",
    "BookFormat",
    "BookStatus",
    "Loan",
    "LoanStatus",
    "MembershipType",
    "Reservation",
    "ReservationStatus",
    "User",
    "UserRole",
]
