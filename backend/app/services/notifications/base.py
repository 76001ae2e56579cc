"""Notification collaborator interface."""
import asyncio
from datetime import datetime
from typing import Protocol, Set

from pydantic import BaseModel, Field

from app.core.errors import NotificationError
from app.core.logging import get_logger, log_error
from app.models.proposal import ProposalStatus

logger = get_logger(__name__)


class ProposalEvent(BaseModel):
    """Committed status change, published after the transaction."""
    proposal_id: str
    new_status: ProposalStatus
    actor_id: str
    occurred_at: datetime = Field(default_factory=datetime.now)


class Notifier(Protocol):
    """Receives proposal events; delivery is best-effort."""

    async def notify(self, event: ProposalEvent) -> None:
        ...


class LogNotifier:
    """Writes events to the structured log only."""

    async def notify(self, event: ProposalEvent) -> None:
        logger.info(
            "proposal_event",
            proposal_id=event.proposal_id,
            new_status=event.new_status.value,
            actor_id=event.actor_id,
        )


async def dispatch_event(notifier: Notifier, event: ProposalEvent) -> bool:
    """
    Hand an event to the notifier without letting failures escape.

    The status change is already committed; a failed delivery is logged as
    a degraded error and reported through the return value.
    """
    try:
        await notifier.notify(event)
        return True
    except Exception as e:
        log_error(
            logger,
            NotificationError(
                "Failed to dispatch proposal event",
                operation="notify",
                proposal_id=event.proposal_id,
                details={"new_status": event.new_status.value},
                original_error=e,
            ),
        )
        return False


# Strong references to in-flight deliveries; the event loop keeps only weak ones.
_pending: Set["asyncio.Task[bool]"] = set()


def _delivery_done(task: "asyncio.Task[bool]") -> None:
    _pending.discard(task)
    if task.cancelled():
        logger.warning("proposal_event_cancelled", task=task.get_name())


def schedule_event(notifier: Notifier, event: ProposalEvent) -> "asyncio.Task[bool]":
    """
    커밋 이후 알림 전송을 백그라운드로 예약.

    Returns immediately; the caller never waits on the notifier or its
    retries. Failures are contained by dispatch_event.
    """
    task = asyncio.create_task(
        dispatch_event(notifier, event),
        name=f"notify-{event.proposal_id}-{event.new_status.value}",
    )
    _pending.add(task)
    task.add_done_callback(_delivery_done)
    return task


def pending_events() -> int:
    return len(_pending)


async def drain_events() -> None:
    """Wait for every scheduled delivery to finish (shutdown, tests)."""
    while _pending:
        await asyncio.gather(*list(_pending))
