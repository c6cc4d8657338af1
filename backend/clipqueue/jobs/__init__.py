"""
Conversion job queue.

This package owns the job lifecycle as seen by the UI:
- Job and HistoryEntry data models
- State transitions and validation
- The JobLedger (in-memory queue state) and its read-only view
- The JobQueueOrchestrator, the single writer to the ledger

Not included:
- Actual transcoding (see clipqueue.encoder)
- Event delivery (see clipqueue.events)
"""

from .errors import (
    BatchSubmissionError,
    InvalidStateTransitionError,
    JobCancellationError,
    JobError,
    JobNotFoundError,
    JobSubmissionError,
)
from .models import (
    HistoryEntry,
    Job,
    JobStatus,
)
from .state import (
    ACTIVE_JOB_STATES,
    TERMINAL_JOB_STATES,
    can_transition_job,
    is_job_active,
    is_job_terminal,
    validate_job_transition,
)
from .ledger import JobLedger, LedgerView
from .orchestrator import CONVERTING_MESSAGE, JobQueueOrchestrator

__all__ = [
    # Errors
    "JobError",
    "JobNotFoundError",
    "InvalidStateTransitionError",
    "JobSubmissionError",
    "BatchSubmissionError",
    "JobCancellationError",
    # Models
    "JobStatus",
    "Job",
    "HistoryEntry",
    # State validation
    "ACTIVE_JOB_STATES",
    "TERMINAL_JOB_STATES",
    "can_transition_job",
    "is_job_active",
    "is_job_terminal",
    "validate_job_transition",
    # Ledger
    "JobLedger",
    "LedgerView",
    # Orchestration
    "CONVERTING_MESSAGE",
    "JobQueueOrchestrator",
]
