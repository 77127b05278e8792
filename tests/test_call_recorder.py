"""
Tests for ghmock call recorder

Tests the append-only call log including:
- Recording order and log-file mirroring
- Pattern queries and category filtering
- assert_called_at_least diagnostics
"""

import pytest

from ghmock.mock.recorder import CallRecord, CallRecorder
from ghmock.mock.rules import Category


@pytest.fixture
def recorder():
    rec = CallRecorder()
    rec.record(Category.GRAPHQL, "fetchThing")
    rec.record(Category.REST, "GET:repos/o/r/milestones")
    rec.record(Category.CLI, "secret list")
    rec.record(Category.GRAPHQL, "fetchThing")
    return rec


class TestCallRecord:
    """Test CallRecord formatting."""

    def test_to_line(self):
        record = CallRecord(Category.REST, "GET:user", timestamp="2024-01-01T00:00:00Z")
        assert record.to_line() == "2024-01-01T00:00:00Z|rest|GET:user"

    def test_to_dict(self):
        record = CallRecord(Category.CLI, "secret list", timestamp="t")
        assert record.to_dict() == {'timestamp': 't', 'category': 'cli', 'signature': 'secret list'}

    def test_timestamp_default(self):
        record = CallRecord(Category.CLI, "x")
        assert record.timestamp.endswith("Z")


class TestCallRecorder:
    """Test CallRecorder queries."""

    def test_calls_in_order(self, recorder):
        assert [c.signature for c in recorder.calls] == [
            "fetchThing",
            "GET:repos/o/r/milestones",
            "secret list",
            "fetchThing",
        ]
        assert len(recorder) == 4

    def test_call_count(self, recorder):
        assert recorder.call_count("fetchThing") == 2
        assert recorder.call_count("milestones") == 1
        assert recorder.call_count("labels") == 0

    def test_was_called_with_category(self, recorder):
        assert recorder.was_called("secret", Category.CLI)
        assert not recorder.was_called("secret", Category.REST)

    def test_matching_regex(self, recorder):
        matches = recorder.matching(r"^GET:repos/.*/milestones$")
        assert [m.category for m in matches] == [Category.REST]

    def test_clear(self, recorder):
        recorder.clear()
        assert recorder.calls == ()
        assert recorder.dump() == "(no calls)"

    def test_assert_called_at_least_passes(self, recorder):
        recorder.assert_called_at_least("fetchThing", 2)

    def test_assert_called_at_least_fails_with_log(self, recorder):
        """Test failure message lists every recorded call."""
        with pytest.raises(AssertionError) as exc_info:
            recorder.assert_called_at_least("fetchThing", 3)

        message = str(exc_info.value)
        assert "Expected at least: 3" in message
        assert "Actual: 2" in message
        assert "All calls:" in message
        assert "|cli|secret list" in message

    def test_assert_on_empty_log(self):
        with pytest.raises(AssertionError, match=r"\(no calls\)"):
            CallRecorder().assert_called_at_least("anything")


class TestCallLogFile:
    """Test mirroring the log to a file."""

    def test_lines_appended(self, tmp_path):
        log_path = tmp_path / "calls" / "mock_calls.log"
        rec = CallRecorder(log_path)
        rec.record(Category.REST, "GET:user")
        rec.record(Category.GRAPHQL, "query a {\n  b\n}")

        lines = log_path.read_text(encoding='utf-8').splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("|rest|GET:user")
        assert lines[1].endswith("|graphql|query a {   b }")

    def test_clear_truncates_file(self, tmp_path):
        log_path = tmp_path / "mock_calls.log"
        rec = CallRecorder(log_path)
        rec.record(Category.REST, "GET:user")
        rec.clear()
        assert log_path.read_text(encoding='utf-8') == ""
