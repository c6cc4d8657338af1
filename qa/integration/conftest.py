"""
Shared fixtures for orchestration and event integration tests.

FakeEncoder is a scriptable collaborator: tests flip its failure switches
and edit its job table directly to simulate the encoder side.
"""

from typing import Dict, List, Optional, Set

import pytest

from clipqueue.deliver.settings import AppSettings
from clipqueue.encoder.base import EncoderCollaborator
from clipqueue.encoder.errors import EncoderError, EncoderUnavailableError
from clipqueue.jobs.models import HistoryEntry, Job, JobStatus
from clipqueue.jobs.orchestrator import JobQueueOrchestrator
from clipqueue.presets.models import BUILTIN_PRESETS, VideoPreset


class FakeEncoder(EncoderCollaborator):
    """In-memory collaborator with failure injection."""

    def __init__(self):
        self.presets: List[VideoPreset] = list(BUILTIN_PRESETS)
        self.presets_error: Optional[Exception] = None
        self.get_presets_calls = 0

        self.jobs: Dict[str, Job] = {}
        self.add_calls: List[tuple] = []
        self.reject_inputs: Set[str] = set()
        self.jobs_error: Optional[Exception] = None

        self.history: List[HistoryEntry] = []
        self.clear_error: Optional[Exception] = None

        self.existing_paths: Set[str] = set()
        self.exists_error: Optional[Exception] = None

        self.settings = AppSettings()
        self.saved_settings: List[AppSettings] = []
        self.save_error: Optional[Exception] = None

        self.cancel_supported = True
        self.cancel_calls: List[str] = []

    async def get_presets(self):
        self.get_presets_calls += 1
        if self.presets_error is not None:
            raise self.presets_error
        return list(self.presets)

    async def add_job(self, input_path, output_path, preset):
        self.add_calls.append((input_path, output_path, preset.name))
        if input_path in self.reject_inputs:
            raise EncoderError(f"cannot read {input_path}")
        job_id = f"job-{len(self.add_calls)}"
        self.jobs[job_id] = Job(
            id=job_id, input_path=input_path, output_path=output_path, preset=preset
        )
        return job_id

    async def get_jobs(self):
        if self.jobs_error is not None:
            raise self.jobs_error
        return [job.model_copy(deep=True) for job in self.jobs.values()]

    async def get_history(self):
        return list(self.history)

    async def clear_completed_jobs(self):
        if self.clear_error is not None:
            raise self.clear_error
        self.jobs = {
            job_id: job for job_id, job in self.jobs.items()
            if job.status not in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)
        }

    async def clear_history(self):
        if self.clear_error is not None:
            raise self.clear_error
        self.history = []

    async def check_path_exists(self, path):
        if self.exists_error is not None:
            raise self.exists_error
        return path in self.existing_paths

    async def load_settings(self):
        return self.settings.model_copy()

    async def save_settings(self, settings):
        if self.save_error is not None:
            raise self.save_error
        self.saved_settings.append(settings)

    async def cancel_job(self, job_id):
        self.cancel_calls.append(job_id)
        if not self.cancel_supported:
            return False
        job = self.jobs[job_id]
        job.status = JobStatus.CANCELLED
        job.version += 2
        return True

    # Helpers for tests

    def set_status(self, job_id: str, status: JobStatus) -> None:
        job = self.jobs[job_id]
        job.status = status
        job.version += 1


@pytest.fixture
def encoder():
    return FakeEncoder()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def orchestrator(encoder, notices):
    return JobQueueOrchestrator(encoder, notifier=notices.append)


@pytest.fixture
def unavailable():
    return EncoderUnavailableError("connection refused")
