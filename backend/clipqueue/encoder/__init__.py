"""
Encoder collaborators.

The queue core talks to the encoder only through EncoderCollaborator.
LocalEncoder is the in-process reference implementation.
"""

from .base import EncoderCollaborator
from .errors import (
    EncoderError,
    EncoderUnavailableError,
    EncoderJobNotFoundError,
)
from .local import LocalEncoder, MAX_HISTORY

__all__ = [
    "EncoderCollaborator",
    "EncoderError",
    "EncoderUnavailableError",
    "EncoderJobNotFoundError",
    "LocalEncoder",
    "MAX_HISTORY",
]
