"""
In-process encoder collaborator.

Holds the encoder-side state: jobs in submission order, the conversion
history (last MAX_HISTORY entries) and persisted settings. It performs no
transcoding itself; a host (or a test) drives each job through its
lifecycle with mark_ready / start_job / report_progress / complete_job /
fail_job, and every change is published on the EventBus.

CRITICAL RULES:
- Every structural change (status, message, error) bumps Job.version
- Events are emitted only after the internal lock is released, so handlers
  may call back into this collaborator
- Persistence failures are logged and never fail the operation
"""

import asyncio
import logging
import os
from typing import Dict, List, Optional

from ..deliver.settings import AppSettings
from ..events.bus import EventBus
from ..events.models import ConverterEvent
from ..jobs.models import HistoryEntry, Job, JobStatus
from ..jobs.state import CANCELLABLE_JOB_STATES, CLEARABLE_JOB_STATES, validate_job_transition
from ..persistence.errors import PersistenceError
from ..persistence.store import JsonStateStore
from ..presets.models import BUILTIN_PRESETS, VideoPreset
from .base import EncoderCollaborator
from .errors import EncoderJobNotFoundError

logger = logging.getLogger(__name__)

MAX_HISTORY = 100


class LocalEncoder(EncoderCollaborator):
    """
    Reference collaborator living in the same process as the queue.

    Args:
        bus: Event bus to publish notifications on
        store: JSON store for settings and history (in-memory only if None)
        presets: Preset catalogue (built-in presets by default)
    """

    def __init__(
        self,
        bus: Optional[EventBus] = None,
        store: Optional[JsonStateStore] = None,
        presets: Optional[List[VideoPreset]] = None,
    ):
        self.bus = bus or EventBus()
        self.store = store
        self._presets = list(presets) if presets is not None else list(BUILTIN_PRESETS)
        self._jobs: Dict[str, Job] = {}
        self._history: List[HistoryEntry] = []
        self._settings = AppSettings()
        self._lock = asyncio.Lock()

    async def restore(self) -> None:
        """Load persisted history and settings from the store."""
        if self.store is None:
            return
        try:
            history = self.store.load_history()
        except PersistenceError as e:
            logger.error(f"[ENCODER] Failed to load history, starting empty: {e}")
            history = []
        try:
            settings = self.store.load_settings()
        except PersistenceError as e:
            logger.error(f"[ENCODER] Failed to load settings, using defaults: {e}")
            settings = AppSettings()

        async with self._lock:
            self._history = history[-MAX_HISTORY:]
            self._settings = settings
        logger.info(f"[ENCODER] Restored {len(self._history)} history entries")

    # ------------------------------------------------------------------
    # Collaborator contract
    # ------------------------------------------------------------------

    async def get_presets(self) -> List[VideoPreset]:
        return [preset.model_copy() for preset in self._presets]

    async def add_job(self, input_path: str, output_path: str, preset: VideoPreset) -> str:
        job = Job(input_path=input_path, output_path=output_path, preset=preset)
        async with self._lock:
            self._jobs[job.id] = job
        logger.info(f"[ENCODER] Job {job.id} queued: {input_path} -> {output_path}")
        await self.bus.emit(ConverterEvent.job_updated(job.id))
        return job.id

    async def get_jobs(self) -> List[Job]:
        async with self._lock:
            return [job.model_copy(deep=True) for job in self._jobs.values()]

    async def get_history(self) -> List[HistoryEntry]:
        async with self._lock:
            return list(self._history)

    async def clear_completed_jobs(self) -> None:
        async with self._lock:
            cleared = [
                job_id for job_id, job in self._jobs.items()
                if job.status in CLEARABLE_JOB_STATES
            ]
            for job_id in cleared:
                del self._jobs[job_id]
        logger.info(f"[ENCODER] Cleared {len(cleared)} finished job(s)")
        await self.bus.emit(ConverterEvent.jobs_cleared())

    async def clear_history(self) -> None:
        async with self._lock:
            self._history = []
        self._save_history([])

    async def check_path_exists(self, path: str) -> bool:
        try:
            return os.path.exists(path)
        except (OSError, ValueError) as e:
            logger.warning(f"[ENCODER] Existence check failed for {path}: {e}")
            return False

    async def load_settings(self) -> AppSettings:
        async with self._lock:
            return self._settings.model_copy()

    async def save_settings(self, settings: AppSettings) -> None:
        async with self._lock:
            self._settings = settings.model_copy()
        if self.store is None:
            return
        try:
            self.store.save_settings(settings)
        except PersistenceError as e:
            logger.error(f"[ENCODER] Failed to persist settings: {e}")

    async def cancel_job(self, job_id: str) -> bool:
        """
        Cancel a queued, ready or processing job.

        Nothing runs in-process, so the job passes through CANCELLING
        straight to CANCELLED.

        Raises:
            EncoderJobNotFoundError: If the job is unknown
        """
        async with self._lock:
            job = self._get_or_raise(job_id)
            if job.status not in CANCELLABLE_JOB_STATES:
                logger.warning(
                    f"[ENCODER] Job {job_id} is {job.status.value}, cannot cancel"
                )
                return False
            self._transition(job, JobStatus.CANCELLING)
            self._transition(job, JobStatus.CANCELLED)
        logger.info(f"[ENCODER] Job {job_id} cancelled")
        await self.bus.emit(ConverterEvent.job_updated(job_id))
        return True

    # ------------------------------------------------------------------
    # Lifecycle drivers
    # ------------------------------------------------------------------

    async def mark_ready(self, job_id: str) -> None:
        """Pre-processing finished; the job waits for a slot."""
        async with self._lock:
            self._transition(self._get_or_raise(job_id), JobStatus.READY)
        await self.bus.emit(ConverterEvent.job_updated(job_id))

    async def start_job(self, job_id: str) -> None:
        async with self._lock:
            self._transition(self._get_or_raise(job_id), JobStatus.PROCESSING)
        logger.info(f"[ENCODER] Job {job_id} started")
        await self.bus.emit(ConverterEvent.job_updated(job_id))

    async def report_progress(self, job_id: str, percent: float) -> None:
        """Progress is not a structural change: no version bump."""
        async with self._lock:
            job = self._get_or_raise(job_id)
            job.progress = min(100.0, max(0.0, percent))
        await self.bus.emit(ConverterEvent.progress_update(job_id, percent))

    async def set_status_message(self, job_id: str, message: Optional[str]) -> None:
        async with self._lock:
            job = self._get_or_raise(job_id)
            job.status_message = message
            job.version += 1
        await self.bus.emit(ConverterEvent.job_updated(job_id))

    async def complete_job(
        self,
        job_id: str,
        file_size_before: int = 0,
        file_size_after: int = 0,
    ) -> HistoryEntry:
        """
        Finish a job and record it in the history.

        Returns:
            The new history entry
        """
        async with self._lock:
            job = self._get_or_raise(job_id)
            self._transition(job, JobStatus.COMPLETED)
            job.progress = 100.0
            job.status_message = None

            entry = HistoryEntry(
                id=job.id,
                input_path=job.input_path,
                output_path=job.output_path,
                preset_name=job.preset.name,
                file_size_before=file_size_before,
                file_size_after=file_size_after,
                duration=job.duration or 0.0,
            )
            self._history.append(entry)
            if len(self._history) > MAX_HISTORY:
                self._history = self._history[-MAX_HISTORY:]
            history = list(self._history)

        logger.info(f"[ENCODER] Job {job_id} completed: {entry.output_path}")
        self._save_history(history)
        await self.bus.emit(ConverterEvent.conversion_complete(job_id))
        return entry

    async def fail_job(self, job_id: str, error: str) -> None:
        async with self._lock:
            job = self._get_or_raise(job_id)
            self._transition(job, JobStatus.FAILED)
            job.error = error
            job.status_message = None
        logger.warning(f"[ENCODER] Job {job_id} failed: {error}")
        await self.bus.emit(ConverterEvent.conversion_failed(job_id))

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _get_or_raise(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise EncoderJobNotFoundError(job_id)
        return job

    def _transition(self, job: Job, target: JobStatus) -> None:
        """
        Raises:
            InvalidStateTransitionError: If the transition is illegal
        """
        validate_job_transition(job.status, target)
        job.status = target
        job.version += 1

    def _save_history(self, history: List[HistoryEntry]) -> None:
        if self.store is None:
            return
        try:
            self.store.save_history(history)
        except PersistenceError as e:
            logger.error(f"[ENCODER] Failed to persist history: {e}")
