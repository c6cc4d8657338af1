"""
Deliver module: where outputs go and what they are called.

Two concerns:
- AppSettings: output directory, subdirectory, naming template
- Path resolution: deterministic, collision-aware destination paths
"""

from .settings import (
    AppSettings,
    DEFAULT_APP_SETTINGS,
    DEFAULT_SUBDIRECTORY,
    normalize_directory,
)
from .paths import (
    SOURCE_EXTENSION,
    OUTPUT_EXTENSION,
    FALLBACK_STEM,
    source_stem,
    resolve_base_directory,
    pad_width,
    render_filename,
    resolve_output_path,
    preview_output_path,
)

__all__ = [
    "AppSettings",
    "DEFAULT_APP_SETTINGS",
    "DEFAULT_SUBDIRECTORY",
    "normalize_directory",
    "SOURCE_EXTENSION",
    "OUTPUT_EXTENSION",
    "FALLBACK_STEM",
    "source_stem",
    "resolve_base_directory",
    "pad_width",
    "render_filename",
    "resolve_output_path",
    "preview_output_path",
]
