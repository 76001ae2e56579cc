"""
Celery publisher for proposal events.

Delivery (email, in-app) is handled by the notification workers that consume
``settings.notification_task_name``; this module only publishes.
"""
import asyncio
import logging

from celery import Celery
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from app.core.config import get_settings
from app.services.notifications.base import ProposalEvent

settings = get_settings()

celery_app = Celery(
    "proposal_events",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    enable_utc=True,
    task_ignore_result=True,
    broker_connection_retry_on_startup=False,
)

_stdlib_logger = logging.getLogger(__name__)


class CeleryNotifier:
    """Publishes proposal events to the notification queue."""

    def __init__(
        self,
        app: Celery = celery_app,
        task_name: str = settings.notification_task_name,
        attempts: int = settings.notification_publish_attempts,
    ) -> None:
        self._app = app
        self._task_name = task_name
        self._publish = retry(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            before_sleep=before_sleep_log(_stdlib_logger, logging.WARNING),
            reraise=True,
        )(self._send)

    def _send(self, event: ProposalEvent) -> None:
        self._app.send_task(
            self._task_name,
            kwargs={
                "proposal_id": event.proposal_id,
                "new_status": event.new_status.value,
                "actor_id": event.actor_id,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )

    async def notify(self, event: ProposalEvent) -> None:
        # send_task blocks on the broker connection
        await asyncio.to_thread(self._publish, event)
