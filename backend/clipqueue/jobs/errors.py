"""
Job-specific error types.

All errors inherit from JobError for easy catching.
Errors are explicit and provide actionable messages.
"""

from typing import List, Optional


class JobError(Exception):
    """Base exception for all job-related failures."""
    pass


class JobNotFoundError(JobError):
    """Raised when a job cannot be found in the ledger."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class InvalidStateTransitionError(JobError):
    """Raised when attempting an illegal state transition."""

    def __init__(self, entity_type: str, current_state: str, target_state: str):
        self.entity_type = entity_type
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid {entity_type} state transition: "
            f"{current_state} -> {target_state}"
        )


class JobSubmissionError(JobError):
    """Raised when the encoder rejects a new job."""

    def __init__(self, input_path: str, reason: str):
        self.input_path = input_path
        self.reason = reason
        super().__init__(f"Failed to add conversion job for {input_path}: {reason}")


class BatchSubmissionError(JobError):
    """
    Raised when a batch submission stops part way.

    Jobs submitted before the failure are NOT rolled back.
    """

    def __init__(
        self,
        input_path: str,
        reason: str,
        submitted_job_ids: Optional[List[str]] = None,
    ):
        self.input_path = input_path
        self.reason = reason
        self.submitted_job_ids = list(submitted_job_ids or [])
        super().__init__(
            f"Failed to add batch conversion jobs at {input_path}: {reason} "
            f"({len(self.submitted_job_ids)} job(s) already submitted)"
        )


class JobCancellationError(JobError):
    """Raised when the encoder cannot honour a cancellation request."""

    def __init__(self, job_id: str, reason: str):
        self.job_id = job_id
        self.reason = reason
        super().__init__(f"Cannot cancel job {job_id}: {reason}")
