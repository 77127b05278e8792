"""
Tests for ghmock common utilities.

Tests JSON helpers and environment lookups without touching the real
environment.
"""

import json
import re
from pathlib import Path

import pytest

from ghmock.common.errors import MalformedResponse
from ghmock.common.utils import (
    ensure_json_value,
    get_defaults_dir,
    get_fixtures_root,
    get_github_token,
    load_json_file,
    parse_json_text,
    write_json_file,
)


class TestParseJsonText:
    """Test suite for parse_json_text() and load_json_file()."""

    def test_scalar_documents(self):
        assert parse_json_text("null") is None
        assert parse_json_text("42") == 42

    def test_malformed_names_source(self):
        with pytest.raises(MalformedResponse, match="Malformed fixture.json"):
            parse_json_text("{not json", source="fixture.json")

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "body.json"
        path.write_text('[{"number": 1}]', encoding='utf-8')
        assert load_json_file(path) == [{"number": 1}]

    def test_load_invalid_file(self, tmp_path):
        path = tmp_path / "body.json"
        path.write_text("<html>", encoding='utf-8')
        with pytest.raises(MalformedResponse, match=re.escape(str(path))):
            load_json_file(path)


class TestEnsureJsonValue:
    """Test suite for ensure_json_value()."""

    def test_passthrough(self):
        value = {"items": [1, "two", None, True]}
        assert ensure_json_value(value) is value

    @pytest.mark.parametrize("value", [{"x": object()}, float("nan"), {1, 2}])
    def test_rejects_non_json(self, value):
        with pytest.raises(MalformedResponse):
            ensure_json_value(value, source="inline body")


class TestWriteJsonFile:
    """Test suite for write_json_file()."""

    def test_pretty_printed_with_newline(self, tmp_path):
        path = tmp_path / "nested" / "out.json"
        write_json_file(path, {"name": "café", "n": 1})

        text = path.read_text(encoding='utf-8')
        assert text == '{\n  "name": "café",\n  "n": 1\n}\n'
        assert json.loads(text) == {"name": "café", "n": 1}


class TestEnvironment:
    """Test suite for environment lookups."""

    def test_directory_defaults(self, monkeypatch):
        monkeypatch.delenv("GHMOCK_FIXTURES_DIR", raising=False)
        monkeypatch.delenv("GHMOCK_DEFAULTS_DIR", raising=False)
        assert get_fixtures_root() == Path("tests/fixtures")
        assert get_defaults_dir() == Path("tests/mocks/defaults")

    def test_directory_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GHMOCK_FIXTURES_DIR", str(tmp_path / "f"))
        monkeypatch.setenv("GHMOCK_DEFAULTS_DIR", str(tmp_path / "d"))
        assert get_fixtures_root() == tmp_path / "f"
        assert get_defaults_dir() == tmp_path / "d"

    def test_token_precedence(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "primary")
        monkeypatch.setenv("GH_TOKEN", "secondary")
        assert get_github_token() == "primary"

        monkeypatch.delenv("GITHUB_TOKEN")
        assert get_github_token() == "secondary"

        monkeypatch.delenv("GH_TOKEN")
        assert get_github_token() is None
