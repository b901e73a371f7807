"""Unit tests for outbound sanitization."""

import pytest

from chatbridge.channels.sanitizer import format_outbound, strip_internal_tags


class TestStripInternalTags:
    """Tests for strip_internal_tags."""

    def test_removes_block_closed_with_invoke(self):
        """A block closed by the malformed closer is removed."""
        assert strip_internal_tags("hello <internal>secret</invoke> world") == "hello  world"

    def test_removes_block_closed_with_internal(self):
        """A block closed by the canonical closer is removed."""
        assert strip_internal_tags("hello <internal>secret</internal> world") == "hello  world"

    def test_unclosed_block_drops_suffix(self):
        """An unterminated block drops everything from the opener on."""
        assert strip_internal_tags("partial <internal>never closes") == "partial"

    def test_unclosed_after_complete_block(self):
        """Complete blocks go first, then a trailing unclosed one truncates."""
        text = "a <internal>x</internal> b <internal>y and more"
        assert strip_internal_tags(text) == "a  b"

    def test_multiple_blocks(self):
        """Every complete block is removed."""
        text = "<internal>one</internal>keep<internal>two</invoke> this"
        assert strip_internal_tags(text) == "keep this"

    def test_shortest_match(self):
        """A block ends at the first closer, not the last."""
        text = "<internal>a</internal>middle<internal>b</internal>"
        assert strip_internal_tags(text) == "middle"

    def test_case_insensitive(self):
        """Markers match regardless of case."""
        assert strip_internal_tags("x <INTERNAL>hidden</Internal> y") == "x  y"
        assert strip_internal_tags("x <Internal>cut off") == "x"

    def test_multiline_block(self):
        """Blocks span line breaks."""
        text = "before\n<internal>\nline 1\nline 2\n</internal>\nafter"
        assert strip_internal_tags(text) == "before\n\nafter"

    def test_stray_closer_removed(self):
        """A lone closer with no opener is removed."""
        assert strip_internal_tags("done</internal> here") == "done here"
        assert strip_internal_tags("done</invoke>") == "done"

    def test_stray_invoke_opener_removed(self):
        """A standalone <invoke> token is removed too."""
        assert strip_internal_tags("<invoke>call") == "call"

    def test_marker_assembled_by_stray_removal(self):
        """A marker that only appears once a stray token is gone is still treated as one."""
        result = strip_internal_tags("ok <in</invoke>ternal>secret")
        assert result == "ok"
        assert "secret" not in result

    def test_plain_text_is_trimmed_only(self):
        """Text without markers is returned trimmed and otherwise unchanged."""
        assert strip_internal_tags("  just <b>html</b> & text \n") == "just <b>html</b> & text"

    def test_only_internal_content_is_empty(self):
        """A message made only of internal content sanitizes to nothing."""
        assert strip_internal_tags("  <internal>all hidden</internal>  ") == ""

    def test_empty_input(self):
        """Empty input stays empty."""
        assert strip_internal_tags("") == ""

    @pytest.mark.parametrize(
        "text",
        [
            "hello <internal>secret</invoke> world",
            "partial <internal>never closes",
            "a</internal>b<invoke>c",
            "  plain text  ",
            "ok <in</invoke>ternal>secret",
        ],
    )
    def test_idempotent(self, text):
        """Sanitizing sanitized text changes nothing."""
        once = strip_internal_tags(text)
        assert strip_internal_tags(once) == once

    @pytest.mark.parametrize(
        "text",
        [
            "x <internal>leak",
            "<internal>a</internal><internal>b",
            "pre <INTERNAL>nested <internal>deep</internal> tail",
        ],
    )
    def test_never_leaks_markers(self, text):
        """No opener survives sanitization."""
        assert "<internal>" not in strip_internal_tags(text).lower()


class TestFormatOutbound:
    """Tests for format_outbound."""

    def test_returns_sanitized_text(self):
        assert format_outbound("Sure! <internal>thinking</internal>Here you go.") == "Sure! Here you go."

    def test_empty_means_nothing_to_send(self):
        assert format_outbound("<internal>only thoughts</internal>") == ""
