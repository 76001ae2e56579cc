"""Notification dispatch for committed proposal transitions."""
from functools import lru_cache

from app.core.config import get_settings
from app.services.notifications.base import (
    LogNotifier,
    Notifier,
    ProposalEvent,
    dispatch_event,
    drain_events,
    pending_events,
    schedule_event,
)


@lru_cache
def get_notifier() -> Notifier:
    """Get the configured notifier instance."""
    settings = get_settings()
    if settings.notification_backend == "celery":
        from app.services.notifications.worker import CeleryNotifier

        return CeleryNotifier()
    return LogNotifier()


__all__ = [
    "LogNotifier",
    "Notifier",
    "ProposalEvent",
    "dispatch_event",
    "drain_events",
    "get_notifier",
    "pending_events",
    "schedule_event",
]
