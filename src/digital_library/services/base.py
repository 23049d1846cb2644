"""
Shared plumbing for the lending workflows.

Every workflow follows the same shape: open a unit of work, load and check
the entities, write the derived ones, let the unit commit, and only then
hand notifications to the dispatcher.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from ..config import LibraryConfig, get_config
from ..errors import (
    BookNotFound,
    LoanLimitExceeded,
    PolicyViolation,
    PremiumRequired,
    UserIneligible,
    UserNotFound,
)
from ..models import Book, BookStatus, Loan, LoanStatus, Reservation, ReservationStatus, User
from ..notifications import (
    LoggingNotificationService,
    NotificationDispatcher,
    NotificationKind,
    NotificationTask,
)
from ..policy import due_date_for, hold_copy, increment_copy
from .ports import UnitOfWorkPort

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], UnitOfWorkPort]
Clock = Callable[[], datetime]


def delivery_recorder(uow_factory: UnitOfWorkFactory) -> Callable[[NotificationTask], None]:
    """Build the dispatcher callback that flags a ready reservation as notified."""

    def record(task: NotificationTask) -> None:
        if task.kind != NotificationKind.RESERVATION_READY or task.reservation_id is None:
            return
        with uow_factory() as uow:
            reservation = uow.reservations.find_by_id(task.reservation_id)
            if reservation is not None and reservation.needs_notification():
                uow.reservations.update(reservation.marked_notified())

    return record


class WorkflowService:
    """
    Base class holding the collaborators every workflow needs.

    Args:
        uow_factory: Returns a fresh unit of work per call
        config: Lending policy constants; defaults to the global config
        notifier: Post-commit notification dispatcher
        clock: Source of "now"; tests pass a fixed clock
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        config: LibraryConfig | None = None,
        notifier: NotificationDispatcher | None = None,
        clock: Clock = datetime.now,
    ):
        self.uow_factory = uow_factory
        self.config = config or get_config()
        self.notifier = notifier or NotificationDispatcher(
            LoggingNotificationService(self.config.reservation_window_days),
            max_attempts=self.config.notification_max_attempts,
            on_delivered=delivery_recorder(uow_factory),
        )
        self.clock = clock

    def _require_user(self, uow: UnitOfWorkPort, user_id: str, action: str) -> User:
        user = uow.users.find_by_id(user_id)
        if user is None:
            logger.info("Rejected %s: user %s not found", action, user_id)
            raise UserNotFound(user_id)
        if not user.can_borrow():
            logger.info("Rejected %s: user %s is inactive", action, user_id)
            raise UserIneligible(user_id, action)
        return user

    def _require_book(self, uow: UnitOfWorkPort, book_id: str) -> Book:
        book = uow.books.find_by_id(book_id, for_update=True)
        if book is None:
            logger.info("Book %s not found", book_id)
            raise BookNotFound(book_id)
        return book

    def _lending_refusal(
        self, uow: UnitOfWorkPort, user: User, book: Book, now: datetime
    ) -> PolicyViolation | None:
        """Premium gate, then the active-loan limit for the user's tier."""
        if book.requires_premium(now, self.config.premium_window_days) and not user.is_premium():
            return PremiumRequired(book.title)

        limit = self.config.loan_limit_for(user.is_premium())
        if len(uow.loans.find_active_loans_by_user(user.id)) >= limit:
            return LoanLimitExceeded(limit)
        return None

    def _check_lending_rules(
        self, uow: UnitOfWorkPort, user: User, book: Book, now: datetime
    ) -> None:
        refusal = self._lending_refusal(uow, user, book, now)
        if refusal is not None:
            logger.info("User %s refused book %s: %s", user.id, book.id, refusal.message)
            raise refusal

    def _can_pick_up(
        self, uow: UnitOfWorkPort, reservation: Reservation, book: Book, now: datetime
    ) -> bool:
        user = uow.users.find_by_id(reservation.user_id)
        if user is None or not user.can_borrow():
            return False
        return self._lending_refusal(uow, user, book, now) is None

    def _open_loan(self, uow: UnitOfWorkPort, user: User, book: Book, now: datetime) -> Loan:
        return Loan(
            id=uow.loans.next_id(now),
            user_id=user.id,
            book_id=book.id,
            loan_date=now,
            due_date=due_date_for(book, now, self.config),
            status=LoanStatus.ACTIVE,
            renewal_count=0,
        )

    def _pass_on_copy(
        self, uow: UnitOfWorkPort, book: Book, now: datetime
    ) -> tuple[Book, Reservation | None]:
        """
        Route a copy that came back into circulation.

        The oldest pending reservation still inside its window whose owner
        could borrow the book now gets the copy as a hold; without one the
        copy goes back on the shelf. Pending reservations found lapsed on the
        way are expired. Owners who cannot borrow yet keep their place.

        Returns:
            The updated book and the reservation promoted to ready, if any
        """
        if book.status != BookStatus.MAINTENANCE:
            for reservation in uow.reservations.find_pending_for_book(book.id):
                if reservation.is_expired(now):
                    uow.reservations.update(reservation.with_status(ReservationStatus.EXPIRED))
                    continue
                if not self._can_pick_up(uow, reservation, book, now):
                    logger.info("Skipping reservation %s: owner cannot borrow yet", reservation.id)
                    continue
                promoted = uow.reservations.update(
                    reservation.marked_ready(now, self.config.reservation_window_days)
                )
                logger.info("Reservation %s is ready for pickup", promoted.id)
                return uow.books.update(hold_copy(book)), promoted

        return uow.books.update(increment_copy(book)), None

    def _notify_ready(self, reservation: Reservation, book_title: str) -> bool:
        return self.notifier.dispatch(
            NotificationTask(
                kind=NotificationKind.RESERVATION_READY,
                user_id=reservation.user_id,
                book_title=book_title,
                reservation_id=reservation.id,
            )
        )
