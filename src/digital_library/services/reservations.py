"""
Reservation workflow.

``reserve`` puts a user in line for a title whose copies are all out. The
reservation is committed first; the confirmation notice goes out after
commit and its outcome never changes the result.
"""

import logging

from ..errors import (
    BookAlreadyAvailable,
    BookNotReservable,
    DuplicateReservation,
    NotReservationOwner,
    ReservationNotActive,
    ReservationNotFound,
)
from ..models import Reservation, ReservationStatus
from ..notifications import NotificationKind, NotificationTask
from ..observability import trace_workflow
from .base import WorkflowService

logger = logging.getLogger(__name__)


class ReservationService(WorkflowService):
    """Places and cancels reservations."""

    @trace_workflow("reserve")
    def reserve(self, user_id: str, book_id: str) -> Reservation:
        """
        Reserve ``book_id`` for ``user_id``.

        Raises:
            UserNotFound: No user has this ID
            UserIneligible: The user is inactive
            BookNotFound: No book has this ID
            BookAlreadyAvailable: A copy can be borrowed right now
            BookNotReservable: The title cannot be reserved (e.g. maintenance)
            DuplicateReservation: The user already has an active reservation for it
        """
        now = self.clock()

        with self.uow_factory() as uow:
            user = self._require_user(uow, user_id, "reserve books")
            book = self._require_book(uow, book_id)

            if book.is_available():
                logger.info("Book %s is available, reservation refused", book.id)
                raise BookAlreadyAvailable(book.title)
            if not book.can_be_reserved():
                logger.info("Book %s cannot be reserved (status %s)", book.id, book.status.value)
                raise BookNotReservable(book.title)

            existing = uow.reservations.find_by_user_id(user.id)
            if any(r.book_id == book.id and r.is_active() for r in existing):
                logger.info("User %s already has a reservation for book %s", user.id, book.id)
                raise DuplicateReservation(user.id, book.id)

            reservation = Reservation.place(
                uow.reservations.next_id(now),
                user.id,
                book.id,
                now,
                window_days=self.config.reservation_window_days,
            )
            reservation = uow.reservations.save(reservation)

        logger.info("Reservation %s placed by user %s for book %s", reservation.id, user_id, book_id)
        self.notifier.dispatch(
            NotificationTask(
                kind=NotificationKind.RESERVATION_CONFIRMED,
                user_id=user_id,
                book_title=book.title,
                reservation_id=reservation.id,
            )
        )
        return reservation

    @trace_workflow("cancel_reservation")
    def cancel(self, reservation_id: str, user_id: str) -> Reservation:
        """
        Cancel an active reservation on behalf of its owner.

        A ready reservation gives up its held copy to the next person in
        line, or back to the shelf.

        Raises:
            ReservationNotFound: No reservation has this ID
            NotReservationOwner: The reservation belongs to someone else
            ReservationNotActive: The reservation is already closed
        """
        now = self.clock()
        promoted = None

        with self.uow_factory() as uow:
            reservation = uow.reservations.find_by_id(reservation_id)
            if reservation is None:
                raise ReservationNotFound(reservation_id)
            if reservation.user_id != user_id:
                logger.info("User %s tried to cancel reservation %s", user_id, reservation_id)
                raise NotReservationOwner(reservation_id, user_id)
            if not reservation.is_active():
                raise ReservationNotActive(reservation_id, reservation.status.value)

            was_ready = reservation.status == ReservationStatus.READY
            cancelled = uow.reservations.update(
                reservation.with_status(ReservationStatus.CANCELLED)
            )

            if was_ready:
                book = self._require_book(uow, reservation.book_id)
                book, promoted = self._pass_on_copy(uow, book, now)

        logger.info("Reservation %s cancelled by user %s", reservation_id, user_id)
        if promoted is not None:
            self._notify_ready(promoted, book.title)
        return cancelled
