"""Tests for resilient_json.decoder.truncation — closing truncated JSON."""

from __future__ import annotations

import json
from unittest import mock

from resilient_json.config import DecoderSettings
from resilient_json.decoder import scanner, truncation
from resilient_json.models.hints import SchemaHints


class TestStripPartialEscape:
    """Tests for strip_partial_escape()."""

    def test_dangling_backslash(self) -> None:
        assert truncation.strip_partial_escape("abc\\") == "abc"

    def test_escaped_backslash_kept(self) -> None:
        assert truncation.strip_partial_escape("abc\\\\") == "abc\\\\"

    def test_partial_unicode_escape(self) -> None:
        assert truncation.strip_partial_escape("abc\\u00") == "abc"

    def test_literal_backslash_before_u_kept(self) -> None:
        assert truncation.strip_partial_escape("abc\\\\u00") == "abc\\\\u00"


class TestSentenceBoundary:
    """Tests for sentence_boundary()."""

    def test_cuts_after_period(self) -> None:
        body = "First sentence. Second half"
        assert body[: truncation.sentence_boundary(body, 500)] == "First sentence."

    def test_cuts_before_escaped_newline(self) -> None:
        body = "line one\\nline tw"
        assert body[: truncation.sentence_boundary(body, 500)] == "line one"

    def test_no_boundary(self) -> None:
        assert truncation.sentence_boundary("no break here", 500) is None

    def test_boundary_outside_window_ignored(self) -> None:
        body = "Early. " + "x" * 600
        assert truncation.sentence_boundary(body, 500) is None

    def test_boundary_at_start_ignored(self) -> None:
        assert truncation.sentence_boundary("\\nrest", 500) is None


class TestRepairTruncation:
    """Tests for repair_truncation()."""

    def _repair(self, text: str, settings: DecoderSettings, hints: SchemaHints | None = None) -> object:
        repaired = truncation.repair_truncation(text, hints, settings=settings)
        assert repaired is not None
        return json.loads(repaired)

    def test_closes_array_then_object(self, settings: DecoderSettings) -> None:
        assert self._repair('{"items": [1, 2, 3', settings) == {"items": [1, 2, 3]}

    def test_closes_deep_nesting_innermost_first(self, settings: DecoderSettings) -> None:
        value = self._repair('{"a": [{"b": {"c": [1', settings)
        assert value == {"a": [{"b": {"c": [1]}}]}

    def test_closes_open_string(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": "hello wor', settings) == {"a": "hello wor"}

    def test_closes_string_at_sentence_boundary(self, settings: DecoderSettings) -> None:
        value = self._repair('{"a": "First sentence. Second ha', settings)
        assert value == {"a": "First sentence."}

    def test_drops_partial_escape(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": "abc\\', settings) == {"a": "abc"}

    def test_drops_partial_key(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": 1, "ke', settings) == {"a": 1}

    def test_drops_key_without_colon(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": 1, "b"', settings) == {"a": 1}

    def test_trailing_colon_gets_null(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": 1, "b":', settings) == {"a": 1, "b": None}

    def test_trailing_comma_removed(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": 1, "b": [1, 2,', settings) == {"a": 1, "b": [1, 2]}

    def test_incomplete_literal_dropped(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": 1, "b": tru', settings) == {"a": 1}
        assert self._repair('{"a": 1, "b": nul', settings) == {"a": 1}
        assert self._repair("[1, 2, -", settings) == [1, 2]

    def test_complete_literal_kept(self, settings: DecoderSettings) -> None:
        assert self._repair('{"a": 1, "b": false', settings) == {"a": 1, "b": False}

    def test_long_tail_string_drops_partial_element(self, settings: DecoderSettings, long_text: str) -> None:
        hints = SchemaHints(tail_arrays=("fixes",))
        text = '{"fixes": [{"reason": "ok"}, {"reason": "' + long_text
        assert self._repair(text, settings, hints) == {"fixes": [{"reason": "ok"}]}

    def test_long_tail_string_without_safe_position_declines(
        self, settings: DecoderSettings, long_text: str
    ) -> None:
        hints = SchemaHints(tail_arrays=("fixes",))
        text = '{"fixes": [{"reason": "' + long_text
        assert truncation.repair_truncation(text, hints, settings=settings) is None

    def test_long_string_outside_tail_array_closed(self, settings: DecoderSettings, long_text: str) -> None:
        value = self._repair('{"summary": "' + long_text, settings)
        assert value == {"summary": long_text.rstrip()}

    def test_short_tail_string_closed(self, settings: DecoderSettings) -> None:
        hints = SchemaHints(tail_arrays=("fixes",))
        value = self._repair('{"fixes": [{"reason": "short', settings, hints)
        assert value == {"fixes": [{"reason": "short"}]}

    def test_only_open_braces_terminates(self, settings: DecoderSettings) -> None:
        assert truncation.repair_truncation("{" * 50, settings=settings) is None

    def test_empty_text(self, settings: DecoderSettings) -> None:
        assert truncation.repair_truncation("   ", settings=settings) is None

    def test_single_pass_limit(self) -> None:
        settings = DecoderSettings(max_truncation_passes=1)
        assert truncation.repair_truncation('{"a": [1', settings=settings) == '{"a": [1]}'

    def test_long_run_of_broken_literals_scans_a_bounded_number_of_times(self, settings: DecoderSettings) -> None:
        text = "[" + "-," * 4000 + "-"
        with mock.patch.object(truncation.scanner, "scan", wraps=scanner.scan) as scan:
            assert truncation.repair_truncation(text, settings=settings) is None
        # One scan before and after the trim, plus one per trim step, per pass.
        assert scan.call_count <= settings.max_truncation_passes * (truncation._MAX_TRIM_STEPS + 2)

    def test_trim_stops_after_dangling_member(self, settings: DecoderSettings) -> None:
        assert truncation.repair_once('{"a": [1, 2], "b": tr', settings=settings) == '{"a": [1, 2]}'
