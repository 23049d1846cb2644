"""Notification side-channel: the default sink and the post-commit dispatcher."""

from .dispatcher import NotificationDispatcher, NotificationKind, NotificationTask
from .service import LoggingNotificationService

__all__ = [
    "LoggingNotificationService",
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationTask",
]
