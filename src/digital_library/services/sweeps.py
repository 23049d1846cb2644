"""
Periodic circulation sweeps.

Meant to be run by a scheduler (or the ``run_circulation_sweep`` tool):

- ``expire_reservations`` closes reservations past their window and passes
  any held copy on
- ``notify_ready_reservations`` tells users their hold is waiting
- ``notify_overdue_loans`` reminds users of overdue loans
- ``flush_notifications`` retries notices that failed earlier
"""

import logging
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ..models import Reservation, ReservationStatus
from ..notifications import NotificationKind, NotificationTask
from ..observability import trace_workflow
from .base import WorkflowService

logger = logging.getLogger(__name__)


class SweepReport(BaseModel):
    """Counts from one full sweep."""

    expired: int = 0
    ready_notices: int = 0
    overdue_notices: int = 0
    retried: int = 0

    model_config = ConfigDict(frozen=True)


class SweepService(WorkflowService):
    """Time-driven housekeeping over loans and reservations."""

    @trace_workflow("expire_reservations")
    def expire_reservations(self, now: datetime | None = None) -> list[Reservation]:
        """
        Expire every pending or ready reservation past its expiration date.

        Returns:
            The expired reservations
        """
        now = now or self.clock()
        expired: list[Reservation] = []
        promoted: list[tuple[Reservation, str]] = []

        with self.uow_factory() as uow:
            lapsed = uow.reservations.find_active_expired(now)
            for reservation in lapsed:
                expired.append(
                    uow.reservations.update(reservation.with_status(ReservationStatus.EXPIRED))
                )

            # Held copies move on only after every lapsed reservation is closed.
            for reservation in lapsed:
                if reservation.status != ReservationStatus.READY:
                    continue
                book = self._require_book(uow, reservation.book_id)
                book, next_in_line = self._pass_on_copy(uow, book, now)
                if next_in_line is not None:
                    promoted.append((next_in_line, book.title))

        if expired:
            logger.info("Expired %d reservation(s)", len(expired))
        for reservation, title in promoted:
            self._notify_ready(reservation, title)
        return expired

    @trace_workflow("notify_ready_reservations")
    def notify_ready_reservations(self) -> int:
        """
        Send a ready notice for every ready reservation not yet notified.

        Reservations whose notice is already waiting in the retry queue are
        skipped.

        Returns:
            Number of notices delivered
        """
        queued = {
            task.reservation_id
            for task in self.notifier.pending
            if task.kind == NotificationKind.RESERVATION_READY
        }

        with self.uow_factory() as uow:
            waiting = []
            for reservation in uow.reservations.find_ready_for_notification():
                if reservation.id in queued:
                    continue
                book = uow.books.find_by_id(reservation.book_id)
                waiting.append((reservation, book.title if book else reservation.book_id))

        return sum(1 for reservation, title in waiting if self._notify_ready(reservation, title))

    @trace_workflow("notify_overdue_loans")
    def notify_overdue_loans(self, now: datetime | None = None) -> int:
        """
        Send an overdue notice for every active loan past its due date.

        Returns:
            Number of notices delivered
        """
        now = now or self.clock()

        with self.uow_factory() as uow:
            tasks = []
            for loan in uow.loans.find_overdue_loans(now):
                book = uow.books.find_by_id(loan.book_id)
                tasks.append(
                    NotificationTask(
                        kind=NotificationKind.LOAN_OVERDUE,
                        user_id=loan.user_id,
                        book_title=book.title if book else loan.book_id,
                        days_overdue=loan.overdue_days(now),
                    )
                )

        if tasks:
            logger.info("Sending %d overdue notice(s)", len(tasks))
        return sum(1 for task in tasks if self.notifier.dispatch(task))

    def flush_notifications(self) -> int:
        """Retry queued notifications once. Returns how many went out."""
        return len(self.notifier.flush())

    def run(self, now: datetime | None = None) -> SweepReport:
        """Run every sweep in order against the same ``now``."""
        now = now or self.clock()
        retried = self.flush_notifications()
        expired = self.expire_reservations(now)
        ready = self.notify_ready_reservations()
        overdue = self.notify_overdue_loans(now)
        return SweepReport(
            expired=len(expired),
            ready_notices=ready,
            overdue_notices=overdue,
            retried=retried,
        )
