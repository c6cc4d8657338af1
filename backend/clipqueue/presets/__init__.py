"""
Preset system.

Presets are immutable encoder recipes loaded from the encoder collaborator.
Jobs snapshot the preset by value at submission.
"""

from .errors import (
    PresetError,
    DuplicatePresetError,
    PresetNotFoundError,
    PresetUnavailableError,
)
from .models import VideoPreset, BUILTIN_PRESETS
from .registry import PresetRegistry

__all__ = [
    "PresetError",
    "DuplicatePresetError",
    "PresetNotFoundError",
    "PresetUnavailableError",
    "VideoPreset",
    "BUILTIN_PRESETS",
    "PresetRegistry",
]
