"""
Preset-specific error types.

All errors inherit from PresetError for easy catching.
Errors are explicit and provide actionable messages.
"""


class PresetError(Exception):
    """Base exception for all preset failures."""
    pass


class DuplicatePresetError(PresetError):
    """Raised when two presets in one set share a name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate preset name: {name}")


class PresetNotFoundError(PresetError):
    """Raised when a referenced preset does not exist in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Preset not found: {name}")


class PresetUnavailableError(PresetError):
    """
    Raised when no preset can be used for a submission.

    The queue remains usable; only the current operation is aborted.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Video presets are not available: {reason}")
