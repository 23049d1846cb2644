"""Lending rules evaluated over the entity models."""

from .availability import (
    can_be_reserved,
    decrement_copy,
    hold_copy,
    increment_copy,
    is_available,
    is_digital,
    release_hold,
    requires_premium,
)
from .temporal import (
    due_date_for,
    fine_for,
    loan_period_for,
    renewal_due_date,
)

__all__ = [
    "can_be_reserved",
    "decrement_copy",
    "due_date_for",
    "fine_for",
    "hold_copy",
    "increment_copy",
    "is_available",
    "is_digital",
    "loan_period_for",
    "release_hold",
    "renewal_due_date",
    "requires_premium",
]
