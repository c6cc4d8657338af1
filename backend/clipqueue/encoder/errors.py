"""
Encoder collaborator error types.

Raised by collaborator implementations. The orchestrator converts them
into JobError subclasses at its boundary.
"""


class EncoderError(Exception):
    """Base exception for all encoder collaborator failures."""
    pass


class EncoderUnavailableError(EncoderError):
    """Raised when the encoder process cannot be reached."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Encoder unavailable: {reason}")


class EncoderJobNotFoundError(EncoderError):
    """Raised when the encoder does not know a job id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Encoder has no job {job_id}")
