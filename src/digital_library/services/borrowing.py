"""
Borrowing workflow.

``borrow`` lends one copy of a book to a user. The checks run in a fixed
order: user, book, premium gate, loan limit. The book update and the new
loan are written inside one unit of work, book first, and committed
together, so a failure in either write leaves both untouched.
"""

import logging

from ..errors import BookUnavailable
from ..models import Loan
from ..observability import trace_workflow
from ..policy import decrement_copy
from .base import WorkflowService

logger = logging.getLogger(__name__)


class BorrowingService(WorkflowService):
    """Lends copies to users."""

    @trace_workflow("borrow")
    def borrow(self, user_id: str, book_id: str) -> Loan:
        """
        Lend a copy of ``book_id`` to ``user_id``.

        Raises:
            UserNotFound: No user has this ID
            UserIneligible: The user is inactive
            BookNotFound: No book has this ID
            BookUnavailable: No copy can be borrowed right now
            PremiumRequired: Recent digital title and a free membership
            LoanLimitExceeded: The user already holds their tier's maximum
        """
        now = self.clock()

        with self.uow_factory() as uow:
            user = self._require_user(uow, user_id, "borrow books")
            book = self._require_book(uow, book_id)
            if not book.is_available():
                logger.info("Book %s is not available (status %s)", book.id, book.status.value)
                raise BookUnavailable(book.title)

            self._check_lending_rules(uow, user, book, now)

            loan = self._open_loan(uow, user, book, now)
            uow.books.update(decrement_copy(book))
            loan = uow.loans.save(loan)

        logger.info(
            "Loan %s created: user %s borrowed book %s until %s",
            loan.id,
            user_id,
            book_id,
            loan.due_date.isoformat(),
        )
        return loan
