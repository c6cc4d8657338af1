"""
Encoder notification model.

Five notification kinds, keyed by job id (except jobs-cleared):

    conversion-progress   (job_id, percent)
    job-updated           job_id          opaque, triggers a re-fetch
    conversion-complete   job_id
    conversion-failed     job_id
    jobs-cleared          no payload

No ordering is guaranteed between kinds or relative to submissions.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class EventKind(str, Enum):
    """Notification kinds emitted by the encoder."""

    PROGRESS = "conversion-progress"
    JOB_UPDATED = "job-updated"
    CONVERSION_COMPLETE = "conversion-complete"
    CONVERSION_FAILED = "conversion-failed"
    JOBS_CLEARED = "jobs-cleared"


class ConverterEvent(BaseModel):
    """
    A single encoder notification.

    Progress values outside 0-100 are clamped, not rejected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: EventKind
    job_id: Optional[str] = None
    progress: Optional[float] = None

    @field_validator("progress")
    @classmethod
    def clamp_progress(cls, v: Optional[float]) -> Optional[float]:
        if v is None:
            return None
        return min(100.0, max(0.0, v))

    @model_validator(mode="after")
    def check_payload(self) -> "ConverterEvent":
        if self.kind != EventKind.JOBS_CLEARED and not self.job_id:
            raise ValueError(f"{self.kind.value} event requires a job id")
        if self.kind == EventKind.PROGRESS and self.progress is None:
            raise ValueError("conversion-progress event requires a progress value")
        return self

    @classmethod
    def progress_update(cls, job_id: str, percent: float) -> "ConverterEvent":
        return cls(kind=EventKind.PROGRESS, job_id=job_id, progress=percent)

    @classmethod
    def job_updated(cls, job_id: str) -> "ConverterEvent":
        return cls(kind=EventKind.JOB_UPDATED, job_id=job_id)

    @classmethod
    def conversion_complete(cls, job_id: str) -> "ConverterEvent":
        return cls(kind=EventKind.CONVERSION_COMPLETE, job_id=job_id)

    @classmethod
    def conversion_failed(cls, job_id: str) -> "ConverterEvent":
        return cls(kind=EventKind.CONVERSION_FAILED, job_id=job_id)

    @classmethod
    def jobs_cleared(cls) -> "ConverterEvent":
        return cls(kind=EventKind.JOBS_CLEARED)


def parse_event(kind: str, payload: Any = None) -> ConverterEvent:
    """
    Build an event from a raw wire payload.

    Accepted payload shapes:
        conversion-progress   [job_id, percent] or {"job_id": ..., "progress": ...}
        job-updated, conversion-complete, conversion-failed
                              job_id or {"job_id": ...}
        jobs-cleared          anything (ignored)

    Raises:
        ValueError: If the kind is unknown or the payload is malformed
            (pydantic.ValidationError is a ValueError)
    """
    event_kind = EventKind(kind)

    if event_kind == EventKind.JOBS_CLEARED:
        return ConverterEvent(kind=event_kind)

    if isinstance(payload, dict):
        return ConverterEvent(kind=event_kind, **payload)

    if event_kind == EventKind.PROGRESS:
        if not isinstance(payload, (list, tuple)) or len(payload) != 2:
            raise ValueError(f"Malformed progress payload: {payload!r}")
        job_id, percent = payload
        return ConverterEvent(kind=event_kind, job_id=job_id, progress=percent)

    return ConverterEvent(kind=event_kind, job_id=payload)
