"""Time-based lending rules: loan periods, renewals and fines."""

from datetime import datetime, timedelta

from ..config import LibraryConfig
from ..models import Book, Loan


def loan_period_for(book: Book, config: LibraryConfig) -> timedelta:
    return timedelta(days=config.loan_days_for(book.is_digital()))


def due_date_for(book: Book, now: datetime, config: LibraryConfig) -> datetime:
    """Due date of a loan of ``book`` starting at ``now``."""
    return now + loan_period_for(book, config)


def renewal_due_date(loan: Loan, book: Book, config: LibraryConfig) -> datetime:
    # A renewal extends by the book's loan period, counted from the current due date.
    return loan.due_date + loan_period_for(book, config)


def fine_for(loan: Loan, now: datetime, config: LibraryConfig) -> float:
    return loan.calculate_fine(now, config.fine_per_day)
