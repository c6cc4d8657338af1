"""
Job and history data models.

A Job is one conversion request: one input file, one output path, one
preset snapshot. A HistoryEntry is the immutable record written when a job
completes.

All models use Pydantic for validation.
State transitions are validated externally (see state.py).

Identity and destination are fixed at creation:
- id, input_path, output_path and preset are frozen fields
- status/progress/messages change only in response to encoder events
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..presets.models import VideoPreset


class JobStatus(str, Enum):
    """
    Job status.

    A job moves through these states as the encoder processes it.
    """

    QUEUED = "queued"  # Accepted by the encoder, waiting
    READY = "ready"  # Pre-processing done (thumbnail, probe), waiting for a slot
    PROCESSING = "processing"  # Encoder is running
    COMPLETED = "completed"  # Output written, history entry recorded
    FAILED = "failed"  # Encoder reported an error
    CANCELLING = "cancelling"  # Cancellation requested, encoder not yet stopped
    CANCELLED = "cancelled"  # Encoder stopped before completion (terminal)


class Job(BaseModel):
    """
    A single conversion job.

    The preset is a copy taken at submission. Later preset edits never
    alter a queued or running job.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    # Identity
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), frozen=True)
    input_path: str = Field(frozen=True)
    output_path: str = Field(frozen=True)
    preset: VideoPreset = Field(frozen=True)

    # State
    status: JobStatus = JobStatus.QUEUED
    progress: float = Field(default=0.0, ge=0.0, le=100.0)

    # Producer-side revision, bumped on every structural change
    version: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=datetime.now)

    # Populated by the encoder
    duration: Optional[float] = None  # Source duration in seconds
    status_message: Optional[str] = None
    error: Optional[str] = None
    thumbnail_path: Optional[str] = None


class HistoryEntry(BaseModel):
    """
    Record of a completed conversion.

    Append-only: entries are removed only by clearing the whole history.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    input_path: str
    output_path: str
    preset_name: str
    completed_at: datetime = Field(default_factory=datetime.now)
    file_size_before: int = Field(default=0, ge=0)
    file_size_after: int = Field(default=0, ge=0)
    duration: float = 0.0

    @property
    def size_reduction_percent(self) -> float:
        """Percentage saved by the conversion (negative if the file grew)."""
        if not self.file_size_before:
            return 0.0
        saved = self.file_size_before - self.file_size_after
        return saved / self.file_size_before * 100.0
