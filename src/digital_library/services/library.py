"""
Service wiring.

``Library`` builds every workflow service on one database, one config, one
clock and one notification dispatcher, so the tool layer and scripts have a
single object to talk to.
"""

import logging
from datetime import datetime

from ..config import LibraryConfig, get_config
from ..database import DatabaseManager, UnitOfWork, get_db_manager
from ..models import Book, Loan, Reservation
from ..notifications import LoggingNotificationService, NotificationDispatcher
from .base import Clock, UnitOfWorkFactory, delivery_recorder
from .borrowing import BorrowingService
from .ports import NotificationSink
from .reservations import ReservationService
from .returns import ReturnReceipt, ReturnService
from .search import CatalogSearch, SearchCriteria
from .sweeps import SweepReport, SweepService

logger = logging.getLogger(__name__)


class Library:
    """
    Facade over the lending workflows.

    Args:
        uow_factory: Returns a fresh unit of work per call
        config: Lending policy constants
        sink: Notification sink; defaults to ``LoggingNotificationService``
        clock: Source of "now"
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        config: LibraryConfig | None = None,
        sink: NotificationSink | None = None,
        clock: Clock = datetime.now,
    ):
        self.config = config or get_config()
        self.notifier = NotificationDispatcher(
            sink or LoggingNotificationService(self.config.reservation_window_days),
            max_attempts=self.config.notification_max_attempts,
            on_delivered=delivery_recorder(uow_factory),
        )

        deps = {
            "uow_factory": uow_factory,
            "config": self.config,
            "notifier": self.notifier,
            "clock": clock,
        }
        self.borrowing = BorrowingService(**deps)
        self.reservations = ReservationService(**deps)
        self.returns = ReturnService(**deps)
        self.sweeps = SweepService(**deps)
        self.catalog = CatalogSearch(uow_factory)

    @classmethod
    def from_database(
        cls,
        db_manager: DatabaseManager,
        config: LibraryConfig | None = None,
        sink: NotificationSink | None = None,
        clock: Clock = datetime.now,
    ) -> "Library":
        """Build a library whose units of work run on ``db_manager``'s sessions."""
        return cls(
            lambda: UnitOfWork(db_manager.session_factory),
            config=config,
            sink=sink,
            clock=clock,
        )

    def borrow(self, user_id: str, book_id: str) -> Loan:
        return self.borrowing.borrow(user_id, book_id)

    def reserve(self, user_id: str, book_id: str) -> Reservation:
        return self.reservations.reserve(user_id, book_id)

    def cancel_reservation(self, reservation_id: str, user_id: str) -> Reservation:
        return self.reservations.cancel(reservation_id, user_id)

    def return_loan(self, loan_id: str) -> ReturnReceipt:
        return self.returns.return_loan(loan_id)

    def renew_loan(self, loan_id: str) -> Loan:
        return self.returns.renew_loan(loan_id)

    def fulfil_reservation(self, reservation_id: str) -> Loan:
        return self.returns.fulfil_reservation(reservation_id)

    def search(self, criteria: SearchCriteria) -> list[Book]:
        return self.catalog.search(criteria)

    def run_sweep(self, now: datetime | None = None) -> SweepReport:
        return self.sweeps.run(now)


class _LibraryStore:
    _instance: Library | None = None


def get_library() -> Library:
    """Get or create the process-wide library on the global database."""
    if _LibraryStore._instance is None:
        _LibraryStore._instance = Library.from_database(get_db_manager())
    return _LibraryStore._instance


def set_library(library: Library | None) -> None:
    """Replace the process-wide library (``None`` resets it)."""
    _LibraryStore._instance = library
