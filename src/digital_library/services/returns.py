"""
Return, renewal and pickup workflows.

These close the loop the borrowing and reservation workflows open:

- ``return_loan`` closes a loan, assesses the fine, and routes the copy to
  the next pending reservation or back onto the shelf
- ``renew_loan`` pushes the due date out by one more loan period
- ``fulfil_reservation`` turns a ready reservation into a loan of its held copy
"""

import logging

from pydantic import BaseModel, ConfigDict

from ..errors import (
    LoanNotActive,
    LoanNotFound,
    RenewalNotAllowed,
    ReservationNotFound,
    ReservationNotReady,
)
from ..models import Book, Loan, Reservation, ReservationStatus
from ..observability import trace_workflow
from ..policy import fine_for, release_hold, renewal_due_date
from .base import WorkflowService

logger = logging.getLogger(__name__)


class ReturnReceipt(BaseModel):
    """Outcome of a return."""

    loan: Loan
    book: Book
    fine: float
    promoted_reservation: Reservation | None = None

    model_config = ConfigDict(frozen=True)


class ReturnService(WorkflowService):
    """Handles copies coming back and loans being extended or picked up."""

    @trace_workflow("return")
    def return_loan(self, loan_id: str) -> ReturnReceipt:
        """
        Close an active loan.

        Raises:
            LoanNotFound: No loan has this ID
            LoanNotActive: The loan was already returned
        """
        now = self.clock()

        with self.uow_factory() as uow:
            loan = uow.loans.find_by_id(loan_id)
            if loan is None:
                raise LoanNotFound(loan_id)
            if not loan.is_active():
                raise LoanNotActive(loan_id, loan.status.value)

            fine = fine_for(loan, now, self.config)
            closed = uow.loans.update(loan.returned(now))

            book = self._require_book(uow, loan.book_id)
            book, promoted = self._pass_on_copy(uow, book, now)

        if fine > 0:
            logger.info("Loan %s returned late, fine %.2f", loan_id, fine)
        else:
            logger.info("Loan %s returned", loan_id)

        if promoted is not None and self._notify_ready(promoted, book.title):
            promoted = promoted.marked_notified()

        return ReturnReceipt(loan=closed, book=book, fine=fine, promoted_reservation=promoted)

    @trace_workflow("renew")
    def renew_loan(self, loan_id: str) -> Loan:
        """
        Extend an active loan by one loan period.

        Raises:
            LoanNotFound: No loan has this ID
            RenewalNotAllowed: The loan is closed, overdue or out of renewals
        """
        now = self.clock()

        with self.uow_factory() as uow:
            loan = uow.loans.find_by_id(loan_id)
            if loan is None:
                raise LoanNotFound(loan_id)
            if not loan.can_be_renewed(now, self.config.max_renewals):
                logger.info(
                    "Renewal refused for loan %s (status %s, renewals %d)",
                    loan_id,
                    loan.status.value,
                    loan.renewal_count,
                )
                raise RenewalNotAllowed(f"Loan {loan_id} cannot be renewed")

            book = self._require_book(uow, loan.book_id)
            renewed = uow.loans.update(loan.renewed(renewal_due_date(loan, book, self.config)))

        logger.info("Loan %s renewed until %s", loan_id, renewed.due_date.isoformat())
        return renewed

    @trace_workflow("fulfil_reservation")
    def fulfil_reservation(self, reservation_id: str) -> Loan:
        """
        Lend the held copy to the owner of a ready reservation.

        Raises:
            ReservationNotFound: No reservation has this ID
            ReservationNotReady: Not ready, or its pickup window has passed
            UserNotFound, UserIneligible, PremiumRequired, LoanLimitExceeded:
                As for ``borrow``
        """
        now = self.clock()

        with self.uow_factory() as uow:
            reservation = uow.reservations.find_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            if not reservation.can_be_fulfilled(now):
                raise ReservationNotReady(reservation_id)

            user = self._require_user(uow, reservation.user_id, "borrow books")
            book = self._require_book(uow, reservation.book_id)
            self._check_lending_rules(uow, user, book, now)

            loan = uow.loans.save(self._open_loan(uow, user, book, now))
            uow.reservations.update(reservation.with_status(ReservationStatus.FULFILLED))
            holds = uow.reservations.find_ready_for_book(book.id)
            uow.books.update(release_hold(book, len(holds)))

        logger.info("Reservation %s fulfilled as loan %s", reservation_id, loan.id)
        return loan
