"""
Event synchronizer.

Keeps the ledger consistent with encoder notifications:

    conversion-progress  → progress merge (max), "Converting video..." if
                           the job has no status message yet
    job-updated          → authoritative jobs re-fetch
    conversion-complete  → jobs and history re-fetch
    conversion-failed    → jobs re-fetch
    jobs-cleared         → jobs re-fetch

CRITICAL RULES:
- Errors never escape a handler; a failed re-fetch leaves the ledger as-is
- All mutation goes through the orchestrator
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, List

from .bus import EventBus
from .models import ConverterEvent, EventKind, parse_event

if TYPE_CHECKING:
    from ..jobs.orchestrator import JobQueueOrchestrator

logger = logging.getLogger(__name__)


class EventSynchronizer:
    """Applies encoder notifications to the orchestrator's ledger."""

    def __init__(self, orchestrator: "JobQueueOrchestrator"):
        self.orchestrator = orchestrator

    def attach(self, bus: EventBus) -> Callable[[], None]:
        """
        Subscribe to every notification kind.

        Returns:
            A function that detaches all subscriptions
        """
        unsubscribers: List[Callable[[], None]] = [
            bus.subscribe(kind, self.handle) for kind in EventKind
        ]

        def detach() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()
            logger.debug("[SYNC] Detached from event bus")

        logger.debug("[SYNC] Attached to event bus")
        return detach

    async def handle(self, event: ConverterEvent) -> None:
        try:
            if event.kind == EventKind.PROGRESS:
                self._on_progress(event)
            elif event.kind == EventKind.JOB_UPDATED:
                await self.orchestrator.refresh_jobs()
            elif event.kind == EventKind.CONVERSION_COMPLETE:
                logger.info(f"[SYNC] Conversion complete: {event.job_id}")
                await self.orchestrator.refresh_jobs()
                await self.orchestrator.refresh_history()
            elif event.kind == EventKind.CONVERSION_FAILED:
                logger.warning(f"[SYNC] Conversion failed: {event.job_id}")
                await self.orchestrator.refresh_jobs()
            elif event.kind == EventKind.JOBS_CLEARED:
                await self.orchestrator.refresh_jobs()
        except Exception as e:
            logger.error(f"[SYNC] Failed to handle {event.kind.value} event: {e}")

    async def handle_raw(self, kind: str, payload: Any = None) -> None:
        """Parse a wire notification and handle it. Malformed input is logged and dropped."""
        try:
            event = parse_event(kind, payload)
        except (ValueError, TypeError) as e:
            logger.warning(f"[SYNC] Dropping malformed {kind!r} notification: {e}")
            return
        await self.handle(event)

    def _on_progress(self, event: ConverterEvent) -> None:
        if not self.orchestrator.apply_progress(event.job_id, event.progress):
            logger.debug(f"[SYNC] Progress for unknown or finished job {event.job_id}, ignoring")
