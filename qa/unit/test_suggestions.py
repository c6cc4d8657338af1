"""
Unit tests for the inline suggestion engine.

Tests:
- Completion of partially typed placeholders
- Safety rules for the text after the cursor
- SuggestionSession notifications
"""

from clipqueue.naming.suggestions import (
    SuggestionSession,
    accept_suggestion,
    suggest_completion,
)


class TestSuggestCompletion:

    def test_completes_name(self):
        assert suggest_completion("{na", 3) == "me}"

    def test_completes_number(self):
        assert suggest_completion("{nu", 3) == "mber}"

    def test_first_placeholder_wins_on_ambiguous_prefix(self):
        assert suggest_completion("{n", 2) == "ame}"

    def test_case_insensitive_prefix(self):
        assert suggest_completion("{NA", 3) == "me}"

    def test_bare_brace(self):
        assert suggest_completion("clip_{", 6) == "name}"

    def test_no_open_brace(self):
        assert suggest_completion("name", 4) == ""

    def test_closed_placeholder(self):
        assert suggest_completion("{name}_", 7) == ""

    def test_no_matching_placeholder(self):
        assert suggest_completion("{x", 2) == ""

    def test_complete_token_not_suggested(self):
        assert suggest_completion("{name}", 6) == ""

    def test_existing_closing_brace_not_duplicated(self):
        assert suggest_completion("{nu}", 3) == "mber"

    def test_safe_followers(self):
        assert suggest_completion("{na_x", 3) == "me}"
        assert suggest_completion("{na x", 3) == "me}"

    def test_unsafe_follower(self):
        assert suggest_completion("{nXY", 2) == ""

    def test_cursor_clamped(self):
        assert suggest_completion("{na", 99) == "me}"
        assert suggest_completion("{na", -5) == ""


class TestAcceptSuggestion:

    def test_inserts_at_cursor(self):
        assert accept_suggestion("{na_x", 3, "me}") == ("{name}_x", 6)

    def test_empty_suggestion(self):
        assert accept_suggestion("{na", 3, "") == ("{na", 3)


class TestSuggestionSession:

    def make_session(self):
        session = SuggestionSession()
        received = []
        session.subscribe(received.append)
        return session, received

    def test_no_suggestion_without_focus(self):
        session, received = self.make_session()

        session.on_text_changed("{na", 3)

        assert session.suggestion == ""
        assert received == []

    def test_focus_computes_suggestion(self):
        session, received = self.make_session()
        session.on_text_changed("{na", 3)

        session.on_focus_changed(True)

        assert session.suggestion == "me}"
        assert received == ["me}"]

    def test_typing_updates_suggestion(self):
        session, received = self.make_session()
        session.on_focus_changed(True)

        session.on_text_changed("{", 1)
        session.on_text_changed("{nu", 3)

        assert received == ["name}", "mber}"]

    def test_unchanged_input_not_recomputed(self):
        session, received = self.make_session()
        session.on_focus_changed(True)
        session.on_text_changed("{na", 3)

        session.on_text_changed("{na", 3)
        session.on_cursor_moved(3)

        assert received == ["me}"]

    def test_cursor_move_recomputes(self):
        session, received = self.make_session()
        session.on_focus_changed(True)
        session.on_text_changed("{na}_x", 6)

        session.on_cursor_moved(3)

        assert session.suggestion == "me"

    def test_blur_clears(self):
        session, received = self.make_session()
        session.on_focus_changed(True)
        session.on_text_changed("{na", 3)

        session.on_focus_changed(False)

        assert session.suggestion == ""
        assert received == ["me}", ""]

    def test_navigation_clears(self):
        session, _ = self.make_session()
        session.on_focus_changed(True)
        session.on_text_changed("{na", 3)

        session.on_navigation()

        assert session.suggestion == ""

    def test_accept(self):
        session, _ = self.make_session()
        session.on_focus_changed(True)
        session.on_text_changed("{na", 3)

        assert session.accept() is True
        assert session.text == "{name}"
        assert session.cursor == 6
        assert session.suggestion == ""
        assert session.accept() is False

    def test_unsubscribe(self):
        session, received = self.make_session()
        extra = []
        unsubscribe = session.subscribe(extra.append)
        unsubscribe()

        session.on_focus_changed(True)
        session.on_text_changed("{", 1)

        assert extra == []
        assert received == ["name}"]

    def test_failing_listener_does_not_break_others(self):
        session = SuggestionSession()
        received = []

        def broken(_):
            raise RuntimeError("render failed")

        session.subscribe(broken)
        session.subscribe(received.append)
        session.on_focus_changed(True)
        session.on_text_changed("{", 1)

        assert received == ["name}"]
