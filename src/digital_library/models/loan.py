"""
Loan model for the Digital Library lending engine.

A loan is created by the borrowing workflow with a due date fixed by the
book's format (14 days physical, 21 days digital). Renewal and return
produce new ``Loan`` values through ``renewed`` and ``returned``.

Time-dependent predicates take ``now`` explicitly so workflows and tests
evaluate them against the same clock.
"""

import math
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_FINE_PER_DAY = 0.50
DEFAULT_MAX_RENEWALS = 2

_ONE_DAY = timedelta(days=1)


class LoanStatus(str, Enum):
    """Status of a loan."""

    ACTIVE = "active"
    RETURNED = "returned"
    OVERDUE = "overdue"
    RENEWED = "renewed"


def _ceil_days(delta: timedelta) -> int:
    return math.ceil(delta / _ONE_DAY)


class Loan(BaseModel):
    """
    Represents a copy of a book lent to a user.

    The loan period is fixed when the loan is created; only a renewal moves
    the due date.
    """

    id: str = Field(
        ...,
        description="Unique identifier for the loan",
        min_length=1,
        examples=["loan_3f9c2a1b"],
    )

    user_id: str = Field(
        ...,
        description="ID of the borrowing user",
        min_length=1,
    )

    book_id: str = Field(
        ...,
        description="ID of the borrowed book",
        min_length=1,
    )

    loan_date: datetime = Field(
        ...,
        description="When the copy was lent",
    )

    due_date: datetime = Field(
        ...,
        description="When the copy must be back",
    )

    status: LoanStatus = Field(
        default=LoanStatus.ACTIVE,
        description="Current status of the loan",
    )

    return_date: datetime | None = Field(
        None,
        description="When the copy was returned",
    )

    renewal_count: int = Field(
        default=0,
        description="Number of times this loan has been renewed",
        ge=0,
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "Loan":
        """Due date must fall after the loan date."""
        if self.due_date <= self.loan_date:
            raise ValueError("Due date must be after loan date")
        if self.return_date is not None and self.return_date < self.loan_date:
            raise ValueError("Return date cannot be before loan date")
        return self

    @property
    def loan_period(self) -> timedelta:
        """Length of the current loan period."""
        return self.due_date - self.loan_date

    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE

    def is_overdue(self, now: datetime) -> bool:
        """An active loan whose due date has passed."""
        return self.is_active() and now > self.due_date

    def can_be_renewed(self, now: datetime, max_renewals: int = DEFAULT_MAX_RENEWALS) -> bool:
        return self.is_active() and self.renewal_count < max_renewals and not self.is_overdue(now)

    def days_until_due(self, now: datetime) -> int:
        """Whole days left until the due date, negative once overdue."""
        return _ceil_days(self.due_date - now)

    def overdue_days(self, now: datetime) -> int:
        """Started days past the due date."""
        if not self.is_overdue(now):
            return 0
        return _ceil_days(now - self.due_date)

    def calculate_fine(self, now: datetime, fine_per_day: float = DEFAULT_FINE_PER_DAY) -> float:
        """
        Calculate the fine owed at ``now``.

        Args:
            now: Instant the fine is assessed at
            fine_per_day: Fine amount per started overdue day

        Returns:
            Zero for a loan that is not overdue, otherwise
            ``overdue_days * fine_per_day``
        """
        return self.overdue_days(now) * fine_per_day

    def renewed(self, new_due_date: datetime) -> "Loan":
        """Derive the loan after one more renewal."""
        return Loan(
            id=self.id,
            user_id=self.user_id,
            book_id=self.book_id,
            loan_date=self.loan_date,
            due_date=new_due_date,
            status=LoanStatus.ACTIVE,
            return_date=None,
            renewal_count=self.renewal_count + 1,
        )

    def returned(self, return_date: datetime) -> "Loan":
        """Derive the closed loan."""
        return Loan(
            id=self.id,
            user_id=self.user_id,
            book_id=self.book_id,
            loan_date=self.loan_date,
            due_date=self.due_date,
            status=LoanStatus.RETURNED,
            return_date=return_date,
            renewal_count=self.renewal_count,
        )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "loan_3f9c2a1b",
                "user_id": "2",
                "book_id": "1",
                "loan_date": "2024-03-01T10:30:00",
                "due_date": "2024-03-15T10:30:00",
                "status": "active",
                "renewal_count": 0,
            }
        },
    )
