"""
Job ledger.

The ledger is the single in-memory context for the queue:
- Loaded presets and the selected preset
- Jobs, in submission order
- Conversion history
- Output settings

Ownership:
- Exactly one JobQueueOrchestrator owns a ledger and performs all mutation
  (the EventSynchronizer mutates through the orchestrator)
- Everyone else reads through a LedgerView, which hands out copies
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..deliver.settings import AppSettings
from ..presets.models import VideoPreset
from ..presets.registry import PresetRegistry
from .errors import JobNotFoundError
from .models import HistoryEntry, Job
from .state import is_job_active, is_job_terminal

logger = logging.getLogger(__name__)


class JobLedger:
    """
    Authoritative in-memory state of the conversion queue.

    Not thread-safe: all access happens on the owning event loop.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self.presets = PresetRegistry()
        self.selected_preset: Optional[VideoPreset] = None
        self.presets_loaded = False

        # job_id -> Job, insertion order = submission order
        self._jobs: Dict[str, Job] = {}
        self._history: List[HistoryEntry] = []
        self._settings = settings or AppSettings()

    # Presets

    def set_presets(self, presets: Iterable[VideoPreset]) -> Optional[VideoPreset]:
        """
        Replace the loaded preset set and select its default preset.

        Returns:
            The selected default preset, or None if the set is empty
        """
        self.presets.load(presets)
        self.selected_preset = self.presets.default_preset()
        self.presets_loaded = self.selected_preset is not None
        return self.selected_preset

    def select_preset(self, preset: VideoPreset) -> None:
        self.selected_preset = preset

    # Jobs

    def get_job(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def get_job_or_raise(self, job_id: str) -> Job:
        """
        Raises:
            JobNotFoundError: If the job is not in the ledger
        """
        job = self.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self) -> List[Job]:
        return list(self._jobs.values())

    def insert_job(self, job: Job) -> None:
        """
        Record a freshly submitted job ahead of the next re-fetch.

        Raises:
            ValueError: If a job with the same ID already exists
        """
        if job.id in self._jobs:
            raise ValueError(f"Job with ID '{job.id}' already exists")
        self._jobs[job.id] = job

    def find_active_job(self, input_path: str) -> Optional[Job]:
        """Return the queued/processing job for this input, if any."""
        for job in self._jobs.values():
            if job.input_path == input_path and is_job_active(job.status):
                return job
        return None

    def claimed_output_paths(self) -> List[str]:
        """Output paths of every job and history entry."""
        return [job.output_path for job in self._jobs.values()] + [
            entry.output_path for entry in self._history
        ]

    def replace_jobs(self, fetched: Iterable[Job]) -> None:
        """
        Replace the job list with an authoritative fetch.

        Merge rules per job id:
        - A fetched copy older than the local one (lower version) is ignored
        - A newer fetched copy replaces the local one as-is
        - At the same version and status, progress never goes backwards and
          an existing status message is kept if the fetch has none
        """
        merged: Dict[str, Job] = {}
        for job in fetched:
            if job.id in merged:
                logger.warning(f"[LEDGER] Duplicate job id in fetch, keeping last: {job.id}")

            local = self._jobs.get(job.id)
            if local is not None:
                if local.version > job.version:
                    logger.debug(
                        f"[LEDGER] Ignoring stale fetch for {job.id}: "
                        f"v{job.version} < v{local.version}"
                    )
                    job = local
                elif local.version == job.version and local.status == job.status:
                    updates: Dict[str, Any] = {}
                    if local.progress > job.progress:
                        updates["progress"] = local.progress
                    if job.status_message is None and local.status_message is not None:
                        updates["status_message"] = local.status_message
                    if updates:
                        job = job.model_copy(update=updates)

            merged[job.id] = job

        self._jobs = merged

    def apply_progress(
        self,
        job_id: str,
        percent: float,
        default_message: Optional[str] = None,
    ) -> bool:
        """
        Merge a progress report into one job.

        Progress never decreases. default_message is only set when the job
        has no status message yet. Reports for finished jobs are dropped.

        Returns:
            False if the job is unknown or already terminal
        """
        job = self._jobs.get(job_id)
        if job is None:
            return False
        if is_job_terminal(job.status):
            logger.debug(f"[LEDGER] Ignoring progress for {job.status.value} job {job_id}")
            return False

        job.progress = max(job.progress, min(100.0, max(0.0, percent)))
        if default_message and not job.status_message:
            job.status_message = default_message
        return True

    # History

    def list_history(self) -> List[HistoryEntry]:
        return list(self._history)

    def replace_history(self, entries: Iterable[HistoryEntry]) -> None:
        self._history = list(entries)

    # Settings

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def update_settings(self, **changes: Any) -> AppSettings:
        """
        Apply settings changes in place.

        Field validators run on assignment (directory normalization,
        template substitution).
        """
        for name, value in changes.items():
            setattr(self._settings, name, value)
        return self._settings

    def replace_settings(self, settings: AppSettings) -> None:
        self._settings = settings

    def view(self) -> "LedgerView":
        return LedgerView(self)


class LedgerView:
    """
    Read-only handle on a ledger.

    Every accessor returns copies; mutating them has no effect on the ledger.
    """

    def __init__(self, ledger: JobLedger):
        self._ledger = ledger

    @property
    def presets(self) -> Tuple[VideoPreset, ...]:
        return tuple(self._ledger.presets.list_presets())

    @property
    def selected_preset(self) -> Optional[VideoPreset]:
        return self._ledger.selected_preset

    @property
    def presets_loaded(self) -> bool:
        return self._ledger.presets_loaded

    @property
    def jobs(self) -> Tuple[Job, ...]:
        return tuple(job.model_copy(deep=True) for job in self._ledger.list_jobs())

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._ledger.list_history())

    @property
    def settings(self) -> AppSettings:
        return self._ledger.settings.model_copy()

    def get_job(self, job_id: str) -> Optional[Job]:
        job = self._ledger.get_job(job_id)
        return job.model_copy(deep=True) if job is not None else None
