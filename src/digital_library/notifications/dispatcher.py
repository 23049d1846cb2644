"""
Post-commit notification side-channel.

Workflows hand a ``NotificationTask`` to the dispatcher only after their
unit of work has committed. The dispatcher tries to deliver it straight
away; a failed attempt (the sink returned ``False`` or raised) is logged and
the task is queued for ``flush``. A task that keeps failing is dropped after
``max_attempts`` deliveries. Nothing here ever raises into the workflow.
"""

import logging
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..services.ports import NotificationSink

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    RESERVATION_CONFIRMED = "reservation_confirmed"
    RESERVATION_READY = "reservation_ready"
    LOAN_OVERDUE = "loan_overdue"


class NotificationTask(BaseModel):
    """One notification waiting to be delivered."""

    kind: NotificationKind
    user_id: str
    book_title: str
    days_overdue: int = 0
    reservation_id: str | None = Field(
        None,
        description="Reservation to mark as notified once a ready notice is delivered",
    )
    attempts: int = 0

    model_config = ConfigDict(frozen=True)

    def retried(self) -> "NotificationTask":
        return NotificationTask(
            kind=self.kind,
            user_id=self.user_id,
            book_title=self.book_title,
            days_overdue=self.days_overdue,
            reservation_id=self.reservation_id,
            attempts=self.attempts + 1,
        )


class NotificationDispatcher:
    """
    Delivers notification tasks to a sink with a bounded retry queue.

    Args:
        sink: Object implementing the ``NotificationSink`` protocol
        max_attempts: Deliveries tried per task before it is dropped
        on_delivered: Called with each task the sink accepted
        dropped_history: How many dropped tasks to keep for inspection
    """

    def __init__(
        self,
        sink: "NotificationSink",
        max_attempts: int = 3,
        on_delivered: Callable[[NotificationTask], None] | None = None,
        dropped_history: int = 100,
    ):
        self.sink = sink
        self.max_attempts = max_attempts
        self.on_delivered = on_delivered
        self._queue: deque[NotificationTask] = deque()
        self.dropped: deque[NotificationTask] = deque(maxlen=dropped_history)

    @property
    def pending(self) -> list[NotificationTask]:
        return list(self._queue)

    def dispatch(self, task: NotificationTask) -> bool:
        """
        Try to deliver ``task`` now.

        Returns:
            True if the sink accepted it. On failure the task is queued for
            ``flush`` (or dropped once out of attempts) and False is returned.
        """
        task = task.retried()
        if self._deliver(task):
            self._record_delivery(task)
            return True

        if task.attempts >= self.max_attempts:
            logger.error(
                "Dropping %s notification for user %s after %d attempts",
                task.kind.value,
                task.user_id,
                task.attempts,
            )
            self.dropped.append(task)
        else:
            self._queue.append(task)
        return False

    def flush(self) -> list[NotificationTask]:
        """
        Retry every queued task once.

        Returns:
            Tasks delivered during this flush
        """
        delivered = []
        for _ in range(len(self._queue)):
            task = self._queue.popleft()
            if self.dispatch(task):
                delivered.append(task)
        if delivered:
            logger.info("Delivered %d queued notification(s)", len(delivered))
        return delivered

    def _deliver(self, task: NotificationTask) -> bool:
        try:
            if task.kind == NotificationKind.RESERVATION_CONFIRMED:
                sent = self.sink.send_reservation_confirmation(task.user_id, task.book_title)
            elif task.kind == NotificationKind.RESERVATION_READY:
                sent = self.sink.send_reservation_ready(task.user_id, task.book_title)
            else:
                sent = self.sink.send_overdue_notice(
                    task.user_id, task.book_title, task.days_overdue
                )
        except Exception:
            logger.exception(
                "Notification sink raised for %s notification to user %s",
                task.kind.value,
                task.user_id,
            )
            return False

        if not sent:
            logger.warning(
                "Notification sink rejected %s notification to user %s (attempt %d)",
                task.kind.value,
                task.user_id,
                task.attempts,
            )
        return bool(sent)

    def _record_delivery(self, task: NotificationTask) -> None:
        if self.on_delivered is None:
            return
        try:
            self.on_delivered(task)
        except Exception:
            logger.exception(
                "Failed to record delivery of %s notification to user %s",
                task.kind.value,
                task.user_id,
            )
