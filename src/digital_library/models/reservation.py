"""
Reservation model for the Digital Library lending engine.

A reservation holds a user's place for a title whose copies are all out.
It starts ``pending``; when a copy comes back the oldest pending reservation
is promoted to ``ready`` with a fresh pickup window. It ends ``fulfilled``,
``expired`` or ``cancelled``.
"""

import math
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_RESERVATION_WINDOW_DAYS = 7


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    PENDING = "pending"
    READY = "ready"
    EXPIRED = "expired"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


ACTIVE_RESERVATION_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.READY})


class Reservation(BaseModel):
    """Represents a user's place in line for a title."""

    id: str = Field(
        ...,
        description="Unique identifier for the reservation",
        min_length=1,
        examples=["reservation_8d41e0c7"],
    )

    user_id: str = Field(
        ...,
        description="ID of the reserving user",
        min_length=1,
    )

    book_id: str = Field(
        ...,
        description="ID of the reserved book",
        min_length=1,
    )

    reservation_date: datetime = Field(
        ...,
        description="When the reservation was placed",
    )

    expiration_date: datetime = Field(
        ...,
        description="When the reservation (or its pickup window) lapses",
    )

    status: ReservationStatus = Field(
        default=ReservationStatus.PENDING,
        description="Current status of the reservation",
    )

    notification_sent: bool = Field(
        default=False,
        description="Whether the user was told the copy is ready",
    )

    @model_validator(mode="after")
    def validate_dates(self) -> "Reservation":
        if self.expiration_date <= self.reservation_date:
            raise ValueError("Expiration date must be after reservation date")
        return self

    @classmethod
    def place(
        cls,
        reservation_id: str,
        user_id: str,
        book_id: str,
        now: datetime,
        window_days: int = DEFAULT_RESERVATION_WINDOW_DAYS,
    ) -> "Reservation":
        """Create a pending reservation valid for ``window_days``."""
        return cls(
            id=reservation_id,
            user_id=user_id,
            book_id=book_id,
            reservation_date=now,
            expiration_date=now + timedelta(days=window_days),
            status=ReservationStatus.PENDING,
        )

    def is_active(self) -> bool:
        return self.status in ACTIVE_RESERVATION_STATUSES

    def is_expired(self, now: datetime) -> bool:
        return now > self.expiration_date

    def can_be_fulfilled(self, now: datetime) -> bool:
        return self.status == ReservationStatus.READY and not self.is_expired(now)

    def needs_notification(self) -> bool:
        return self.status == ReservationStatus.READY and not self.notification_sent

    def days_until_expiration(self, now: datetime) -> int:
        return math.ceil((self.expiration_date - now) / timedelta(days=1))

    def with_status(self, status: ReservationStatus) -> "Reservation":
        """Derive the reservation in a new status, dates unchanged."""
        return Reservation(
            id=self.id,
            user_id=self.user_id,
            book_id=self.book_id,
            reservation_date=self.reservation_date,
            expiration_date=self.expiration_date,
            status=status,
            notification_sent=self.notification_sent,
        )

    def marked_ready(
        self, now: datetime, window_days: int = DEFAULT_RESERVATION_WINDOW_DAYS
    ) -> "Reservation":
        """Derive the reservation promoted to ready with a fresh pickup window."""
        return Reservation(
            id=self.id,
            user_id=self.user_id,
            book_id=self.book_id,
            reservation_date=self.reservation_date,
            expiration_date=now + timedelta(days=window_days),
            status=ReservationStatus.READY,
            notification_sent=False,
        )

    def marked_notified(self) -> "Reservation":
        return Reservation(
            id=self.id,
            user_id=self.user_id,
            book_id=self.book_id,
            reservation_date=self.reservation_date,
            expiration_date=self.expiration_date,
            status=self.status,
            notification_sent=True,
        )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "reservation_8d41e0c7",
                "user_id": "2",
                "book_id": "2",
                "reservation_date": "2024-03-01T10:30:00",
                "expiration_date": "2024-03-08T10:30:00",
                "status": "pending",
                "notification_sent": False,
            }
        },
    )
