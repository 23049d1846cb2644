"""Loan repository: loan inserts, updates and the queries behind limits and overdue notices."""

from datetime import datetime

from sqlalchemy import select

from ..errors import LoanNotFound
from ..models import Loan as LoanModel
from ..models import LoanStatus
from .repository import BaseRepository
from .schema import Loan as LoanDB


class LoanRepository(BaseRepository[LoanDB, LoanModel]):
    id_prefix = "loan"

    @property
    def model_class(self):
        return LoanDB

    @property
    def response_schema(self):
        return LoanModel

    def update(self, loan: LoanModel) -> LoanModel:
        """
        Persist a derived loan.

        Raises:
            LoanNotFound: If no row has ``loan.id``
        """
        db_obj = self._get_row(loan.id, for_update=True)
        if db_obj is None:
            raise LoanNotFound(loan.id)
        return self._apply(db_obj, loan)

    def find_active_loans_by_user(self, user_id: str) -> list[LoanModel]:
        query = select(LoanDB).where(
            LoanDB.user_id == user_id,
            LoanDB.status == LoanStatus.ACTIVE,
        )
        return self._list(query.order_by(LoanDB.due_date))

    def find_overdue_loans(self, now: datetime) -> list[LoanModel]:
        """Active loans whose due date lies before ``now``, most overdue first."""
        query = select(LoanDB).where(
            LoanDB.status == LoanStatus.ACTIVE,
            LoanDB.due_date < now,
        )
        return self._list(query.order_by(LoanDB.due_date))
