"""
Path Resolution — Deterministic output path generation.

resolve_output_path() turns (input file, settings, claimed paths, batch
context) into ONE destination path.

CRITICAL RULES:
1. Resolution is pure: no filesystem access, no logging, no exceptions
2. The same inputs always produce the same path
3. Collisions are only detected against the supplied snapshot. Live
   existence checks belong to the caller (see jobs.orchestrator), which
   retries with an explicit index while the candidate is taken
4. Output path is resolved ONCE at submission and stored on the Job

Numbering:
- Template with {number}: the index is always substituted, zero-padded
- Template without {number}: "-<index>" is appended only when numbering
  is forced (explicit index, or a retry against a non-empty snapshot)
"""

import math
from pathlib import PurePosixPath
from typing import Collection, Optional

from ..naming.validation import (
    NAME_PLACEHOLDER,
    NUMBER_PLACEHOLDER,
    effective_template,
)
from .settings import AppSettings, normalize_directory

# Source container stripped from the input leaf name
SOURCE_EXTENSION = ".webm"

# Target container, fixed
OUTPUT_EXTENSION = "mp4"

# Stem used when nothing is left of the input leaf name
FALLBACK_STEM = "video"

# Separator between the rendered template and an appended index
AUTO_NUMBER_SEPARATOR = "-"

# Upper bound for the snapshot retry loop
_MAX_ATTEMPTS = 100_000


def source_stem(input_path: str) -> str:
    """
    Extract the base name used for {name}.

    /media/clip.webm → clip
    /media/clip      → clip
    /media/.webm     → video
    """
    leaf = input_path.rstrip("/").rsplit("/", 1)[-1]
    if leaf.lower().endswith(SOURCE_EXTENSION):
        leaf = leaf[: -len(SOURCE_EXTENSION)]
    return leaf or FALLBACK_STEM


def resolve_base_directory(input_path: str, settings: AppSettings) -> PurePosixPath:
    """
    Determine the directory the output is written to.

    Output directory if set, else the input file's own directory,
    plus the subdirectory when enabled.
    """
    if settings.output_directory:
        base = PurePosixPath(normalize_directory(settings.output_directory))
    else:
        base = PurePosixPath(input_path.rstrip("/")).parent

    if settings.use_subdirectory and settings.subdirectory_name:
        base = base / settings.subdirectory_name
    return base


def pad_width(
    existing_paths: Optional[Collection[str]] = None,
    total_files: Optional[int] = None,
) -> int:
    """
    Number of digits used for zero-padded indices.

    Batch size wins when known; otherwise the snapshot size plus headroom.

    Examples:
        total_files=3   → 1   (0..2)
        total_files=12  → 2   (00..11)
        empty snapshot  → 2   (headroom of 10)
    """
    if total_files:
        max_index = total_files - 1
    elif existing_paths is not None:
        max_index = len(existing_paths) + 10
    else:
        max_index = 0
    return max(1, math.ceil(math.log10(max_index + 1)))


def render_filename(
    template: str,
    stem: str,
    index: int,
    width: int,
    force_numbering: bool = False,
) -> str:
    """
    Substitute placeholders in an already-valid template.

    Returns:
        Filename without extension
    """
    number = str(index).zfill(width)
    name = template.replace(NAME_PLACEHOLDER, stem)

    if NUMBER_PLACEHOLDER in template:
        return name.replace(NUMBER_PLACEHOLDER, number)
    if force_numbering:
        return f"{name}{AUTO_NUMBER_SEPARATOR}{number}"
    return name


def resolve_output_path(
    input_path: str,
    settings: AppSettings,
    existing_paths: Optional[Collection[str]] = None,
    index: Optional[int] = None,
    total_files: Optional[int] = None,
) -> str:
    """
    Resolve the destination path for one input file.

    This is the PRIMARY API for path resolution.

    Args:
        input_path: Absolute path to the source file
        settings: Output settings
        existing_paths: Snapshot of output paths already claimed
        index: Explicit index; forces numbering and skips the snapshot loop
        total_files: Size of the batch being submitted, if known

    Returns:
        Absolute output path (POSIX separators)
    """
    template = effective_template(settings.file_name_pattern)
    stem = source_stem(input_path)
    base_dir = resolve_base_directory(input_path, settings)
    width = pad_width(existing_paths, total_files)
    has_snapshot = bool(existing_paths)

    def candidate(number: int, force: bool = False) -> str:
        force = force or (number > 0 and has_snapshot)
        filename = render_filename(template, stem, number, width, force)
        return str(base_dir / f"{filename}.{OUTPUT_EXTENSION}")

    if index is not None:
        return candidate(index, force=True)

    if total_files and total_files > 1 and NUMBER_PLACEHOLDER in template:
        return candidate(0, force=True)

    path = candidate(0)
    if not has_snapshot:
        return path

    number = 0
    while path in existing_paths and number < _MAX_ATTEMPTS:
        number += 1
        path = candidate(number, force=True)
    return path


def preview_output_path(
    settings: AppSettings,
    sample_input: str = "example.webm",
) -> str:
    """
    Path shown in the settings preview.

    {number} is rendered unpadded as 0; no collision handling.
    """
    template = effective_template(settings.file_name_pattern)
    filename = render_filename(template, source_stem(sample_input), 0, width=1)
    base_dir = resolve_base_directory(sample_input, settings)
    return str(base_dir / f"{filename}.{OUTPUT_EXTENSION}")
