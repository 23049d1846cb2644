"""
Reservation repository for the Digital Library lending engine.

Besides plain inserts and updates it answers the queue questions the
workflows ask: who is next in line for a book, which reservations lapsed,
and which ready reservations still owe the user a notice.
"""

from datetime import datetime

from sqlalchemy import select

from ..errors import ReservationNotFound
from ..models import ACTIVE_RESERVATION_STATUSES, ReservationStatus
from ..models import Reservation as ReservationModel
from .repository import BaseRepository
from .schema import Reservation as ReservationDB


class ReservationRepository(BaseRepository[ReservationDB, ReservationModel]):
    """Queue access for reservations."""

    id_prefix = "reservation"

    @property
    def model_class(self):
        return ReservationDB

    @property
    def response_schema(self):
        return ReservationModel

    def update(self, reservation: ReservationModel) -> ReservationModel:
        """
        Persist a derived reservation.

        Raises:
            ReservationNotFound: If no row has ``reservation.id``
        """
        db_obj = self._get_row(reservation.id, for_update=True)
        if db_obj is None:
            raise ReservationNotFound(reservation.id)
        return self._apply(db_obj, reservation)

    def find_by_user_id(self, user_id: str) -> list[ReservationModel]:
        query = select(ReservationDB).where(ReservationDB.user_id == user_id)
        return self._list(query.order_by(ReservationDB.reservation_date))

    def find_pending_for_book(self, book_id: str) -> list[ReservationModel]:
        """Pending reservations for a book in queue order (oldest first)."""
        query = select(ReservationDB).where(
            ReservationDB.book_id == book_id,
            ReservationDB.status == ReservationStatus.PENDING,
        )
        return self._list(query.order_by(ReservationDB.reservation_date, ReservationDB.id))

    def find_ready_for_book(self, book_id: str) -> list[ReservationModel]:
        query = select(ReservationDB).where(
            ReservationDB.book_id == book_id,
            ReservationDB.status == ReservationStatus.READY,
        )
        return self._list(query.order_by(ReservationDB.reservation_date, ReservationDB.id))

    def find_active_expired(self, now: datetime) -> list[ReservationModel]:
        """Pending or ready reservations whose expiration date has passed."""
        query = select(ReservationDB).where(
            ReservationDB.status.in_(list(ACTIVE_RESERVATION_STATUSES)),
            ReservationDB.expiration_date < now,
        )
        return self._list(query.order_by(ReservationDB.expiration_date, ReservationDB.id))

    def find_ready_for_notification(self) -> list[ReservationModel]:
        """Ready reservations the user has not been told about yet."""
        query = select(ReservationDB).where(
            ReservationDB.status == ReservationStatus.READY,
            ReservationDB.notification_sent.is_(False),
        )
        return self._list(query.order_by(ReservationDB.reservation_date, ReservationDB.id))
