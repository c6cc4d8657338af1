"""
Encoder collaborator interface.

The encoder is the black box that actually converts files. The queue core
only talks to it through this contract:

- Queries: presets, jobs, history, settings
- Commands: add job, clear completed jobs, clear history, cancel, save settings
- Existence check for candidate output paths
- Events (progress, job updated, complete, failed, jobs cleared) are
  published on an EventBus, see clipqueue.events

Design rules:
- Every method is a coroutine; callers may suspend on any of them
- check_path_exists() never raises: implementations report errors as False
- save_settings() is fire-and-forget from the caller's point of view
"""

from abc import ABC, abstractmethod
from typing import List

from ..deliver.settings import AppSettings
from ..jobs.models import HistoryEntry, Job
from ..presets.models import VideoPreset


class EncoderCollaborator(ABC):
    """Abstract base class for encoder collaborators."""

    @abstractmethod
    async def get_presets(self) -> List[VideoPreset]:
        """
        Raises:
            EncoderError: If the encoder is unreachable
        """

    @abstractmethod
    async def add_job(
        self,
        input_path: str,
        output_path: str,
        preset: VideoPreset,
    ) -> str:
        """
        Register a conversion job and schedule it.

        Returns:
            The new job id
        """

    @abstractmethod
    async def get_jobs(self) -> List[Job]:
        """All known jobs, in submission order."""

    @abstractmethod
    async def get_history(self) -> List[HistoryEntry]:
        """Completed conversions, oldest first."""

    @abstractmethod
    async def clear_completed_jobs(self) -> None:
        """Remove jobs in a terminal state."""

    @abstractmethod
    async def clear_history(self) -> None:
        """Remove every history entry."""

    @abstractmethod
    async def check_path_exists(self, path: str) -> bool:
        """Return True if a file exists at path. Never raises."""

    @abstractmethod
    async def load_settings(self) -> AppSettings:
        """Persisted settings, or defaults."""

    @abstractmethod
    async def save_settings(self, settings: AppSettings) -> None:
        """Persist settings."""

    async def cancel_job(self, job_id: str) -> bool:
        """
        Request cancellation of a job.

        Returns:
            True if the request was accepted. The default implementation
            does not support cancellation.
        """
        return False
