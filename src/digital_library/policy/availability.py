"""
Availability rules for books.

Pure functions over ``Book``: predicates that decide whether a title can be
lent or reserved, and transforms that move a copy out of or back onto the
shelf. Transforms never touch their argument; they return a derived book.

Status follows the copy count:
- taking the last copy flips ``available`` to ``borrowed``
- returning a copy flips ``borrowed``/``reserved`` back to ``available``
- a copy held for a ready reservation stays off the shelf and marks an
  empty title ``reserved``
- ``maintenance`` is only ever changed by staff, never by these rules
"""

from datetime import datetime

from ..errors import CopyCountError
from ..models import Book, BookStatus


def is_available(book: Book) -> bool:
    return book.is_available()


def is_digital(book: Book) -> bool:
    return book.is_digital()


def can_be_reserved(book: Book) -> bool:
    return book.can_be_reserved()


def requires_premium(book: Book, now: datetime, window_days: int = 365) -> bool:
    return book.requires_premium(now, window_days)


def decrement_copy(book: Book) -> Book:
    """
    Take one copy off the shelf.

    Raises:
        CopyCountError: If no copy is left to take
    """
    if book.available_copies == 0:
        raise CopyCountError(f"No copies of '{book.title}' left to lend")

    remaining = book.available_copies - 1
    status = BookStatus.BORROWED if remaining == 0 else book.status
    return book.with_availability(remaining, status)


def increment_copy(book: Book) -> Book:
    """
    Put one copy back on the shelf.

    Raises:
        CopyCountError: If every copy is already on the shelf
    """
    if book.available_copies >= book.total_copies:
        raise CopyCountError(f"All copies of '{book.title}' are already on the shelf")

    if book.status == BookStatus.MAINTENANCE:
        status = BookStatus.MAINTENANCE
    else:
        status = BookStatus.AVAILABLE
    return book.with_availability(book.available_copies + 1, status)


def hold_copy(book: Book) -> Book:
    """
    Keep a returned copy aside for a ready reservation.

    The held copy is not counted as available, so the title stays
    reservable while the hold lasts.
    """
    if book.status == BookStatus.MAINTENANCE or book.available_copies > 0:
        return book
    return book.with_availability(0, BookStatus.RESERVED)


def release_hold(book: Book, holds_remaining: int) -> Book:
    """Reopen a reserved book once no ready reservation holds a copy."""
    if book.status != BookStatus.RESERVED or holds_remaining > 0:
        return book
    if book.available_copies == 0:
        return book.with_availability(0, BookStatus.BORROWED)
    return book.with_availability(book.available_copies, BookStatus.AVAILABLE)
