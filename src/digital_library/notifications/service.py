"""
Default notification sink.

Delivery mechanics (email, push, SMS) are outside the lending engine. This
sink renders the message a user would receive and writes it to the log, so
the triggering conditions stay observable in development and tests.
"""

import logging

logger = logging.getLogger(__name__)


class LoggingNotificationService:
    """
    Notification sink that logs each message and reports it delivered.

    Args:
        pickup_days: Days a ready reservation is held, quoted in ready notices
    """

    def __init__(self, pickup_days: int = 7):
        self.pickup_days = pickup_days

    def send_notification(self, user_id: str, subject: str, message: str) -> bool:
        logger.info("Notification to user %s: %s - %s", user_id, subject, message)
        return True

    def send_reservation_confirmation(self, user_id: str, book_title: str) -> bool:
        return self.send_notification(
            user_id,
            "Reservation confirmed",
            f'Your reservation for "{book_title}" has been confirmed. '
            "We'll notify you when it's available.",
        )

    def send_reservation_ready(self, user_id: str, book_title: str) -> bool:
        return self.send_notification(
            user_id,
            "Your reservation is ready",
            f'Your reserved book "{book_title}" is ready for pickup. '
            f"You have {self.pickup_days} days to collect it.",
        )

    def send_overdue_notice(self, user_id: str, book_title: str, days_overdue: int) -> bool:
        return self.send_notification(
            user_id,
            "Overdue book",
            f'"{book_title}" is {days_overdue} day(s) overdue. Please return it as soon as possible.',
        )
