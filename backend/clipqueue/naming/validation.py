"""
Naming template validation.

A naming template is the user-authored string that describes how an output
filename is derived from an input file and its batch position.

Recognized placeholders:
- {name}    Source filename without its extension
- {number}  Zero-padded position of the file within its batch

CRITICAL RULES:
1. Validation is pure: no side effects, no logging of user input
2. An empty template is valid (it means "use the default")
3. An invalid template is NEVER rejected at the call site: callers
   substitute DEFAULT_TEMPLATE and surface explain_template() as a hint
"""

import re
from typing import Optional

NAME_PLACEHOLDER = "{name}"
NUMBER_PLACEHOLDER = "{number}"

# Order matters for the suggestion engine: first match wins
PLACEHOLDERS = (NAME_PLACEHOLDER, NUMBER_PLACEHOLDER)

DEFAULT_TEMPLATE = "{name}_converted"

# Characters that cannot appear in a filename on the supported platforms
RESERVED_CHARACTERS = frozenset('<>:"|?*\\/')

_TOKEN_PATTERN = re.compile(r"\{([^}]*)\}")


def explain_template(template: Optional[str]) -> Optional[str]:
    """
    Explain why a naming template is invalid.

    Rules are checked in order and the first failure is reported.

    Returns:
        A human-readable reason, or None if the template is valid
    """
    if not template:
        return None

    depth = 0
    for char in template:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if depth < 0:
            return "Closing brace without a matching opening brace"
    if depth != 0:
        return "Unclosed brace"

    for match in _TOKEN_PATTERN.finditer(template):
        if match.group(0) not in PLACEHOLDERS:
            return (
                f"Unsupported placeholder: {match.group(0)} "
                f"(use {' or '.join(PLACEHOLDERS)})"
            )

    literal = _TOKEN_PATTERN.sub("", template)
    found = sorted({c for c in literal if c in RESERVED_CHARACTERS})
    if found:
        return f"Invalid filename characters: {' '.join(found)}"

    return None


def is_valid_template(template: Optional[str]) -> bool:
    """Return True if the template can be used for filename generation."""
    return explain_template(template) is None


def effective_template(template: Optional[str]) -> str:
    """
    Return the template that will actually be used for generation.

    Empty and invalid templates both fall back to DEFAULT_TEMPLATE.
    """
    if not template or not is_valid_template(template):
        return DEFAULT_TEMPLATE
    return template


def uses_number(template: Optional[str]) -> bool:
    """Return True if the effective template embeds the batch position."""
    return NUMBER_PLACEHOLDER in effective_template(template)
