"""
Unit of work for the lending workflows.

A workflow's writes either all land or none do: the unit opens one session,
hands out repositories bound to it, commits once on a clean exit and rolls
back if the block raises.

```python
with UnitOfWork(session_factory) as uow:
    uow.books.update(decrement_copy(book))
    uow.loans.save(loan)
# book update and loan insert committed together
```
"""

import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from .book_repository import BookRepository
from .loan_repository import LoanRepository
from .reservation_repository import ReservationRepository
from .session import safe_commit
from .user_repository import UserRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Transactional boundary spanning every repository of one workflow call."""

    users: UserRepository
    books: BookRepository
    loans: LoanRepository
    reservations: ReservationRepository

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory
        self.session: Session | None = None

    def __enter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        self.users = UserRepository(self.session)
        self.books = BookRepository(self.session)
        self.loans = LoanRepository(self.session)
        self.reservations = ReservationRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        session = self.session
        try:
            if exc_type is None:
                safe_commit(session, "unit of work")
            else:
                logger.debug("Rolling back unit of work after %s", exc_type.__name__)
                session.rollback()
        finally:
            session.close()
            self.session = None
