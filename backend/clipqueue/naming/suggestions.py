"""
Inline suggestion engine for the naming template editor.

Given the template text and the cursor offset, computes the text that would
complete a partially typed placeholder. Only the algorithm lives here;
rendering the ghost text is the host's job.

The host drives a SuggestionSession with direct notifications
(text changed, cursor moved, focus changed, navigation key) instead of
sampling the editor on a timer.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from .validation import PLACEHOLDERS

logger = logging.getLogger(__name__)

# Characters after the cursor that make inserting a suggestion safe
_SAFE_FOLLOWERS = ("}", " ", "_")

_WORD_BREAK = re.compile(r"[}\s_]")

SuggestionListener = Callable[[str], None]


def suggest_completion(text: str, cursor: int) -> str:
    """
    Compute a completion for the placeholder being typed at the cursor.

    Examples:
        suggest_completion("{na", 3)        -> "me}"
        suggest_completion("{nu}", 3)       -> "mber"   (closing brace already there)
        suggest_completion("{n_x", 2)       -> "ame}"
        suggest_completion("{nXY", 2)       -> ""       (would not form a placeholder)

    Args:
        text: Current template text
        cursor: Cursor offset (clamped into the text)

    Returns:
        The text to insert at the cursor, or "" if there is no safe suggestion
    """
    cursor = max(0, min(cursor, len(text)))
    before = text[:cursor]
    after = text[cursor:]

    open_brace = before.rfind("{")
    close_brace = before.rfind("}")
    if open_brace < 0 or open_brace < close_brace:
        return ""

    partial = before[open_brace:]
    match = next(
        (
            p for p in PLACEHOLDERS
            if p.lower().startswith(partial.lower()) and p != partial
        ),
        None,
    )
    if match is None:
        return ""

    remainder = match[len(partial):]

    if after.startswith("}") and remainder.endswith("}"):
        return remainder[:-1]
    if not after or after.startswith(_SAFE_FOLLOWERS):
        return remainder

    # Text right after the cursor must still extend the placeholder
    combined = partial + remainder + _WORD_BREAK.split(after, 1)[0]
    if any(p.startswith(combined) for p in PLACEHOLDERS):
        return remainder
    return ""


def accept_suggestion(text: str, cursor: int, suggestion: str) -> Tuple[str, int]:
    """
    Insert a suggestion at the cursor.

    Returns:
        (new_text, new_cursor)
    """
    cursor = max(0, min(cursor, len(text)))
    if not suggestion:
        return text, cursor
    return text[:cursor] + suggestion + text[cursor:], cursor + len(suggestion)


class SuggestionSession:
    """
    Suggestion state for one template editor.

    Recomputes only when the text or cursor actually changed, and pushes
    the new suggestion to listeners when it differs from the last one.
    """

    def __init__(self, text: str = "", cursor: Optional[int] = None):
        self._text = text
        self._cursor = len(text) if cursor is None else cursor
        self._focused = False
        self._suggestion = ""
        self._listeners: List[SuggestionListener] = []

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def focused(self) -> bool:
        return self._focused

    @property
    def suggestion(self) -> str:
        return self._suggestion

    def subscribe(self, listener: SuggestionListener) -> Callable[[], None]:
        """
        Register a listener called with every new suggestion.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_text_changed(self, text: str, cursor: int) -> None:
        if text == self._text and cursor == self._cursor:
            return
        self._text = text
        self._cursor = cursor
        self._recompute()

    def on_cursor_moved(self, cursor: int) -> None:
        if cursor == self._cursor:
            return
        self._cursor = cursor
        self._recompute()

    def on_focus_changed(self, focused: bool) -> None:
        if focused == self._focused:
            return
        self._focused = focused
        if focused:
            self._recompute()
        else:
            self._publish("")

    def on_navigation(self) -> None:
        """Arrow/Home/End keys dismiss the current suggestion."""
        self._publish("")

    def accept(self) -> bool:
        """
        Accept the current suggestion (Tab).

        Returns:
            True if a suggestion was inserted
        """
        if not self._suggestion:
            return False
        self._text, self._cursor = accept_suggestion(
            self._text, self._cursor, self._suggestion
        )
        self._publish("")
        return True

    def _recompute(self) -> None:
        if not self._focused:
            return
        self._publish(suggest_completion(self._text, self._cursor))

    def _publish(self, suggestion: str) -> None:
        if suggestion == self._suggestion:
            return
        self._suggestion = suggestion
        for listener in list(self._listeners):
            try:
                listener(suggestion)
            except Exception as e:
                logger.error(f"[NAMING] Suggestion listener failed: {e}")
