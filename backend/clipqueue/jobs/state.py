"""
State transition validation for jobs.

Job lifecycle:
    QUEUED → READY → PROCESSING → COMPLETED | FAILED
    QUEUED/READY/PROCESSING → CANCELLING → CANCELLED

INVARIANT: Terminal job states (COMPLETED, FAILED, CANCELLED) are immutable.
Once a job enters a terminal state, no state transition is allowed.

CANCELLING may still end in COMPLETED or FAILED when the encoder finishes
before it honours the cancellation.
"""

from typing import FrozenSet, Set, Tuple

from .errors import InvalidStateTransitionError
from .models import JobStatus

TERMINAL_JOB_STATES: FrozenSet[JobStatus] = frozenset({
    JobStatus.COMPLETED,
    JobStatus.FAILED,
    JobStatus.CANCELLED,
})

# A second submission for the same input is a no-op while a job is in one of these
ACTIVE_JOB_STATES: FrozenSet[JobStatus] = frozenset({
    JobStatus.QUEUED,
    JobStatus.PROCESSING,
})

# Removed by "clear completed"
CLEARABLE_JOB_STATES: FrozenSet[JobStatus] = TERMINAL_JOB_STATES

CANCELLABLE_JOB_STATES: FrozenSet[JobStatus] = frozenset({
    JobStatus.QUEUED,
    JobStatus.READY,
    JobStatus.PROCESSING,
})

_JOB_TRANSITIONS: Set[Tuple[JobStatus, JobStatus]] = {
    # Pre-processing
    (JobStatus.QUEUED, JobStatus.READY),

    # Starting
    (JobStatus.QUEUED, JobStatus.PROCESSING),
    (JobStatus.READY, JobStatus.PROCESSING),

    # Outcomes
    (JobStatus.PROCESSING, JobStatus.COMPLETED),
    (JobStatus.PROCESSING, JobStatus.FAILED),

    # Pre-processing failures (unreadable input, probe error)
    (JobStatus.QUEUED, JobStatus.FAILED),
    (JobStatus.READY, JobStatus.FAILED),

    # Cancellation
    (JobStatus.QUEUED, JobStatus.CANCELLING),
    (JobStatus.READY, JobStatus.CANCELLING),
    (JobStatus.PROCESSING, JobStatus.CANCELLING),
    (JobStatus.CANCELLING, JobStatus.CANCELLED),
    (JobStatus.CANCELLING, JobStatus.COMPLETED),
    (JobStatus.CANCELLING, JobStatus.FAILED),
}


def is_job_terminal(status: JobStatus) -> bool:
    """Check if a job status is terminal (immutable)."""
    return status in TERMINAL_JOB_STATES


def is_job_active(status: JobStatus) -> bool:
    """Check if a job blocks resubmission of the same input."""
    return status in ACTIVE_JOB_STATES


def can_transition_job(from_status: JobStatus, to_status: JobStatus) -> bool:
    """
    Check if a job state transition is legal.

    INVARIANT: Terminal states cannot transition to any other state.

    Args:
        from_status: Current job status
        to_status: Target job status

    Returns:
        True if the transition is allowed, False otherwise
    """
    # Allow staying in same state (idempotent operations)
    if from_status == to_status:
        return True

    if is_job_terminal(from_status):
        return False

    return (from_status, to_status) in _JOB_TRANSITIONS


def validate_job_transition(from_status: JobStatus, to_status: JobStatus) -> None:
    """
    Validate a job state transition, raising an exception if illegal.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    if not can_transition_job(from_status, to_status):
        raise InvalidStateTransitionError("job", from_status.value, to_status.value)
