"""Tests for the Loan model: due dates, renewals and fines."""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from digital_library.models import Loan, LoanStatus

LOAN_DATE = datetime(2024, 3, 1, 10, 0)
DUE_DATE = LOAN_DATE + timedelta(days=14)


@pytest.fixture
def loan() -> Loan:
    return Loan(
        id="loan_1",
        user_id="2",
        book_id="1",
        loan_date=LOAN_DATE,
        due_date=DUE_DATE,
    )


class TestLoanValidation:
    def test_due_date_must_follow_loan_date(self):
        """Test that a loan cannot be due before it starts."""
        with pytest.raises(ValidationError) as exc_info:
            Loan(id="l", user_id="2", book_id="1", loan_date=LOAN_DATE, due_date=LOAN_DATE)

        assert "Due date must be after loan date" in str(exc_info.value)

    def test_return_date_cannot_precede_loan(self):
        """Test that a copy cannot come back before it went out."""
        with pytest.raises(ValidationError):
            Loan(
                id="l",
                user_id="2",
                book_id="1",
                loan_date=LOAN_DATE,
                due_date=DUE_DATE,
                status=LoanStatus.RETURNED,
                return_date=LOAN_DATE - timedelta(hours=1),
            )

    def test_defaults(self, loan):
        """Test that a new loan is active and unrenewed."""
        assert loan.status == LoanStatus.ACTIVE
        assert loan.renewal_count == 0
        assert loan.return_date is None
        assert loan.loan_period == timedelta(days=14)


class TestOverdue:
    def test_not_overdue_on_due_date(self, loan):
        """Test that a loan is still on time at the due instant."""
        assert loan.is_overdue(DUE_DATE) is False

    def test_overdue_after_due_date(self, loan):
        """Test that a loan is overdue one second after the due instant."""
        assert loan.is_overdue(DUE_DATE + timedelta(seconds=1)) is True

    def test_returned_loan_is_never_overdue(self, loan):
        """Test that closed loans are not overdue."""
        returned = loan.returned(LOAN_DATE + timedelta(days=3))
        assert returned.is_overdue(DUE_DATE + timedelta(days=10)) is False

    def test_days_until_due(self, loan):
        """Test the countdown to the due date."""
        assert loan.days_until_due(LOAN_DATE) == 14
        assert loan.days_until_due(DUE_DATE - timedelta(hours=5)) == 1
        assert loan.days_until_due(DUE_DATE + timedelta(days=2)) == -2


class TestFines:
    """Fines are charged per started overdue day."""

    def test_no_fine_when_on_time(self, loan):
        """Test that on-time returns are free."""
        assert loan.calculate_fine(DUE_DATE) == 0.0

    def test_partial_day_counts_as_full_day(self, loan):
        """Test that one hour late costs one day."""
        assert loan.overdue_days(DUE_DATE + timedelta(hours=1)) == 1
        assert loan.calculate_fine(DUE_DATE + timedelta(hours=1)) == 0.50

    def test_whole_days(self, loan):
        """Test that exactly three days late costs three days."""
        assert loan.calculate_fine(DUE_DATE + timedelta(days=3)) == 1.50

    def test_days_and_a_bit(self, loan):
        """Test that three days and a minute late costs four days."""
        assert loan.calculate_fine(DUE_DATE + timedelta(days=3, minutes=1)) == 2.00

    def test_custom_rate(self, loan):
        """Test that the daily rate is configurable."""
        assert loan.calculate_fine(DUE_DATE + timedelta(days=2), fine_per_day=1.25) == 2.50


class TestRenewal:
    def test_active_loan_can_be_renewed(self, loan):
        """Test that a fresh loan is renewable."""
        assert loan.can_be_renewed(LOAN_DATE + timedelta(days=1)) is True

    def test_renewal_limit(self, loan):
        """Test that the renewal count is capped."""
        twice = loan.renewed(DUE_DATE + timedelta(days=14)).renewed(DUE_DATE + timedelta(days=28))

        assert twice.renewal_count == 2
        assert twice.can_be_renewed(LOAN_DATE) is False
        assert twice.can_be_renewed(LOAN_DATE, max_renewals=3) is True

    def test_overdue_loan_cannot_be_renewed(self, loan):
        """Test that overdue loans must be returned, not renewed."""
        assert loan.can_be_renewed(DUE_DATE + timedelta(days=1)) is False

    def test_renewed_moves_only_the_due_date(self, loan):
        """Test that renewal keeps the loan date and bumps the counter."""
        new_due = DUE_DATE + timedelta(days=14)
        renewed = loan.renewed(new_due)

        assert renewed.due_date == new_due
        assert renewed.loan_date == LOAN_DATE
        assert renewed.renewal_count == 1
        assert renewed.status == LoanStatus.ACTIVE
        assert loan.renewal_count == 0

    def test_returned_closes_the_loan(self, loan):
        """Test that a return records the date and status."""
        when = LOAN_DATE + timedelta(days=5)
        returned = loan.returned(when)

        assert returned.status == LoanStatus.RETURNED
        assert returned.return_date == when
        assert returned.is_active() is False
        assert returned.can_be_renewed(when) is False
