"""
Naming templates: validation and inline suggestions.

Path resolution (turning a template into a destination path) lives in
clipqueue.deliver.paths.
"""

from .validation import (
    NAME_PLACEHOLDER,
    NUMBER_PLACEHOLDER,
    PLACEHOLDERS,
    DEFAULT_TEMPLATE,
    RESERVED_CHARACTERS,
    explain_template,
    is_valid_template,
    effective_template,
    uses_number,
)
from .suggestions import (
    suggest_completion,
    accept_suggestion,
    SuggestionSession,
)

__all__ = [
    "NAME_PLACEHOLDER",
    "NUMBER_PLACEHOLDER",
    "PLACEHOLDERS",
    "DEFAULT_TEMPLATE",
    "RESERVED_CHARACTERS",
    "explain_template",
    "is_valid_template",
    "effective_template",
    "uses_number",
    "suggest_completion",
    "accept_suggestion",
    "SuggestionSession",
]
