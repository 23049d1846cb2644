"""
Collaborator contracts the workflows depend on.

The SQLAlchemy repositories in ``digital_library.database`` satisfy these
protocols; tests may pass any object with the same methods.
"""

from datetime import datetime
from types import TracebackType
from typing import Protocol

from ..models import Book, BookFormat, Loan, Reservation, User


class UserLookup(Protocol):
    def find_by_id(self, id: str) -> User | None: ...


class BookStore(Protocol):
    def find_by_id(self, id: str, for_update: bool = False) -> Book | None: ...

    def update(self, book: Book) -> Book:
        """Persist ``book``; raises ``BookNotFound`` for an unknown ID."""
        ...

    def find_all(self) -> list[Book]: ...

    def search_by_title(self, fragment: str) -> list[Book]: ...

    def search_by_author(self, fragment: str) -> list[Book]: ...

    def find_by_format(self, format: BookFormat) -> list[Book]: ...

    def find_available_books(self) -> list[Book]: ...


class LoanStore(Protocol):
    def next_id(self, now: datetime) -> str: ...

    def save(self, loan: Loan) -> Loan: ...

    def update(self, loan: Loan) -> Loan: ...

    def find_by_id(self, id: str) -> Loan | None: ...

    def find_active_loans_by_user(self, user_id: str) -> list[Loan]: ...

    def find_overdue_loans(self, now: datetime) -> list[Loan]: ...


class ReservationStore(Protocol):
    def next_id(self, now: datetime) -> str: ...

    def save(self, reservation: Reservation) -> Reservation: ...

    def update(self, reservation: Reservation) -> Reservation: ...

    def find_by_id(self, id: str) -> Reservation | None: ...

    def find_by_user_id(self, user_id: str) -> list[Reservation]: ...

    def find_pending_for_book(self, book_id: str) -> list[Reservation]: ...

    def find_ready_for_book(self, book_id: str) -> list[Reservation]: ...

    def find_active_expired(self, now: datetime) -> list[Reservation]: ...

    def find_ready_for_notification(self) -> list[Reservation]: ...


class NotificationSink(Protocol):
    """
    Best-effort delivery. The boolean reports whether the message went out;
    it never decides whether the workflow succeeded.
    """

    def send_reservation_confirmation(self, user_id: str, book_title: str) -> bool: ...

    def send_reservation_ready(self, user_id: str, book_title: str) -> bool: ...

    def send_overdue_notice(self, user_id: str, book_title: str, days_overdue: int) -> bool: ...


class UnitOfWorkPort(Protocol):
    """One transaction spanning every store a workflow touches."""

    users: UserLookup
    books: BookStore
    loans: LoanStore
    reservations: ReservationStore

    def __enter__(self) -> "UnitOfWorkPort": ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...
