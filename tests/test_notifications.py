"""
Tests for the notification side-channel.

The dispatcher must:
1. Deliver straight away when the sink accepts
2. Queue failed deliveries (sink returned False or raised) for ``flush``
3. Drop a task after ``max_attempts`` deliveries
4. Never raise into the caller
"""

import logging

from digital_library.notifications import (
    LoggingNotificationService,
    NotificationDispatcher,
    NotificationKind,
    NotificationTask,
)
from digital_library.services import Library


def ready_task(reservation_id: str = "reservation_1") -> NotificationTask:
    return NotificationTask(
        kind=NotificationKind.RESERVATION_READY,
        user_id="3",
        book_title="Domain-Driven Design",
        reservation_id=reservation_id,
    )


class TestNotificationDispatcher:
    def test_immediate_delivery(self, sink):
        """Test that an accepted task is not queued."""
        delivered = []
        dispatcher = NotificationDispatcher(sink, on_delivered=delivered.append)

        assert dispatcher.dispatch(ready_task()) is True
        assert sink.sent == [("reservation_ready", "3", "Domain-Driven Design")]
        assert dispatcher.pending == []
        assert [task.attempts for task in delivered] == [1]

    def test_each_kind_reaches_its_sink_method(self, sink):
        dispatcher = NotificationDispatcher(sink)

        dispatcher.dispatch(
            NotificationTask(
                kind=NotificationKind.RESERVATION_CONFIRMED, user_id="2", book_title="El Quijote"
            )
        )
        dispatcher.dispatch(
            NotificationTask(
                kind=NotificationKind.LOAN_OVERDUE,
                user_id="2",
                book_title="El Quijote",
                days_overdue=4,
            )
        )

        assert sink.sent == [
            ("reservation_confirmed", "2", "El Quijote"),
            ("loan_overdue", "2", "El Quijote", 4),
        ]

    def test_rejected_task_is_queued(self, sink):
        """Test that a sink returning False queues the task."""
        sink.deliver = False
        dispatcher = NotificationDispatcher(sink)

        assert dispatcher.dispatch(ready_task()) is False
        assert len(dispatcher.pending) == 1
        assert dispatcher.pending[0].attempts == 1

    def test_raising_sink_is_contained(self, sink, caplog):
        """Test that a sink exception is logged, not raised."""
        sink.error = TimeoutError("gateway timeout")
        dispatcher = NotificationDispatcher(sink)

        with caplog.at_level(logging.ERROR):
            assert dispatcher.dispatch(ready_task()) is False

        assert "Notification sink raised" in caplog.text
        assert len(dispatcher.pending) == 1

    def test_flush_delivers_queued(self, sink):
        sink.deliver = False
        dispatcher = NotificationDispatcher(sink)
        dispatcher.dispatch(ready_task("reservation_1"))
        dispatcher.dispatch(ready_task("reservation_2"))

        sink.deliver = True
        delivered = dispatcher.flush()

        assert [task.reservation_id for task in delivered] == ["reservation_1", "reservation_2"]
        assert [task.attempts for task in delivered] == [2, 2]
        assert dispatcher.pending == []

    def test_drop_after_max_attempts(self, sink):
        """Test that a task failing every attempt is dropped."""
        sink.deliver = False
        dispatcher = NotificationDispatcher(sink, max_attempts=2)

        dispatcher.dispatch(ready_task())
        assert dispatcher.flush() == []

        assert dispatcher.pending == []
        assert [task.attempts for task in dispatcher.dropped] == [2]

    def test_dropped_history_is_bounded(self, sink):
        """Test that only the most recent dropped tasks are kept."""
        sink.deliver = False
        dispatcher = NotificationDispatcher(sink, max_attempts=1, dropped_history=2)

        for number in range(1, 5):
            dispatcher.dispatch(ready_task(f"reservation_{number}"))

        assert [task.reservation_id for task in dispatcher.dropped] == [
            "reservation_3",
            "reservation_4",
        ]

    def test_failing_callback_is_contained(self, sink, caplog):
        """Test that an error recording a delivery does not fail the dispatch."""

        def broken(task):
            raise RuntimeError("database unavailable")

        dispatcher = NotificationDispatcher(sink, on_delivered=broken)

        with caplog.at_level(logging.ERROR):
            assert dispatcher.dispatch(ready_task()) is True

        assert "Failed to record delivery" in caplog.text


class TestLoggingNotificationService:
    def test_messages_are_logged(self, caplog):
        """Test that the default sink logs each notice and reports success."""
        service = LoggingNotificationService()

        with caplog.at_level(logging.INFO):
            assert service.send_reservation_confirmation("2", "El Quijote") is True
            assert service.send_reservation_ready("3", "Domain-Driven Design") is True
            assert service.send_overdue_notice("2", "Clean Architecture", 3) is True

        assert "El Quijote" in caplog.text
        assert "Domain-Driven Design" in caplog.text
        assert "Clean Architecture" in caplog.text

    def test_ready_notice_quotes_pickup_window(self, caplog):
        service = LoggingNotificationService(pickup_days=3)

        with caplog.at_level(logging.INFO):
            service.send_reservation_ready("3", "Domain-Driven Design")

        assert "You have 3 days to collect it." in caplog.text

    def test_library_default_sink_uses_configured_window(self, uow_factory, test_config):
        config = test_config.model_copy(update={"reservation_window_days": 5})

        library = Library(uow_factory, config)

        assert library.notifier.sink.pickup_days == 5
