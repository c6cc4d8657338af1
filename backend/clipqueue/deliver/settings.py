"""
AppSettings — Process-wide output settings.

AppSettings define WHERE and UNDER WHAT NAME outputs are written:
- Output directory ("" means "next to the input file")
- Optional subdirectory inside that directory
- Naming template
- Display preferences

CRITICAL RULES:
1. The stored naming template is ALWAYS valid. An invalid template is
   replaced by DEFAULT_TEMPLATE on assignment, never rejected
2. Output directories are stored without trailing separators
3. Jobs never hold a reference to AppSettings: their output path is
   resolved once at submission
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator

from ..naming.validation import DEFAULT_TEMPLATE, is_valid_template

DEFAULT_SUBDIRECTORY = "converted"


def normalize_directory(directory: str) -> str:
    """
    Strip trailing separators from a directory path.

    The filesystem root keeps its single separator.
    """
    if not directory:
        return ""
    stripped = directory.rstrip("/")
    if not stripped:
        return "/"
    return stripped


class AppSettings(BaseModel):
    """Output settings shared by every submission."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    output_directory: str = ""
    use_subdirectory: bool = True
    subdirectory_name: str = DEFAULT_SUBDIRECTORY
    file_name_pattern: str = DEFAULT_TEMPLATE
    zoomed_thumbnails: bool = False

    @field_validator("output_directory")
    @classmethod
    def validate_output_directory(cls, v: str) -> str:
        return normalize_directory(v)

    @field_validator("subdirectory_name")
    @classmethod
    def validate_subdirectory_name(cls, v: str) -> str:
        """Subdirectory is a single path component."""
        v = v.strip().strip("/")
        return v or DEFAULT_SUBDIRECTORY

    @field_validator("file_name_pattern")
    @classmethod
    def validate_file_name_pattern(cls, v: str) -> str:
        """Invalid or empty templates are substituted, not rejected."""
        if not v or not is_valid_template(v):
            return DEFAULT_TEMPLATE
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        """
        Build settings from persisted data.

        Unknown keys written by other versions are ignored.
        """
        known = {k: v for k, v in data.items() if k in cls.model_fields}
        return cls(**known)


DEFAULT_APP_SETTINGS = AppSettings()
