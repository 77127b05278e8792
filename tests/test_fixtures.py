"""
Tests for ghmock fixture resolver

Tests resolution of response sources including:
- Fixture references relative to the root and as literal paths
- Inline bodies (JSON text and Python values)
- Missing and malformed fixtures
- Domain-aware loading and parameterized fixtures
"""

import pytest

from ghmock.common.errors import FixtureNotFound, MalformedResponse
from ghmock.mock.fixtures import FixtureResolver
from ghmock.mock.rules import FixtureRef, InlineBody


@pytest.fixture
def resolver(fixtures_root):
    return FixtureResolver(fixtures_root)


class TestResolve:
    """Test FixtureResolver.resolve."""

    def test_fixture_ref_relative_to_root(self, resolver):
        body = resolver.resolve(FixtureRef("graphql/thing/get.json"))
        assert body == {"data": {"thing": {"id": "T_1", "name": "widget"}}}

    def test_fixture_ref_literal_path(self, resolver, fixtures_root):
        """Test absolute paths resolve when not under the root."""
        path = fixtures_root / "rest" / "milestone" / "get.json"
        assert resolver.resolve(FixtureRef(str(path))) == {"number": 3, "title": "v3.0"}

    def test_missing_fixture(self, resolver):
        with pytest.raises(FixtureNotFound) as exc_info:
            resolver.resolve(FixtureRef("graphql/nope/missing.json"))
        assert exc_info.value.path == "graphql/nope/missing.json"
        assert len(exc_info.value.searched) == 2

    def test_malformed_fixture(self, resolver):
        with pytest.raises(MalformedResponse):
            resolver.resolve(FixtureRef("graphql/broken/bad.json"))

    def test_inline_text(self, resolver):
        assert resolver.resolve(InlineBody('[{"name": "A"}]')) == [{"name": "A"}]

    def test_inline_value(self, resolver):
        assert resolver.resolve(InlineBody({"items": []})) == {"items": []}

    def test_inline_malformed_text(self, resolver):
        with pytest.raises(MalformedResponse, match="Malformed inline response"):
            resolver.resolve(InlineBody("{oops"))

    def test_inline_non_json_value(self, resolver):
        with pytest.raises(MalformedResponse):
            resolver.resolve(InlineBody({"bad": object()}))

    def test_inline_bytes(self, resolver):
        assert resolver.resolve(InlineBody(b'{"name": "caf\xc3\xa9"}')) == {"name": "caf\u00e9"}

    def test_inline_invalid_utf8(self, resolver):
        """Test undecodable bytes are rejected rather than replaced."""
        with pytest.raises(MalformedResponse, match="Malformed inline response"):
            resolver.resolve(InlineBody(b'{"name": "\xff"}'))


class TestDomainFixtures:
    """Test domain-aware loading helpers."""

    def test_load_fixture(self, resolver):
        assert resolver.load_fixture("milestone", "list_all", "rest") == [{"number": 1, "title": "v1.0"}]

    def test_load_fixture_with_extension(self, resolver):
        assert resolver.load_fixture("thing", "get.json")["data"]["thing"]["id"] == "T_1"

    def test_fixture_exists(self, resolver):
        assert resolver.fixture_exists("thing", "get")
        assert not resolver.fixture_exists("thing", "missing")

    def test_load_missing_fixture(self, resolver):
        with pytest.raises(FixtureNotFound, match="rest/milestone/missing"):
            resolver.load_fixture("milestone", "missing", "rest")

    def test_synthetic_fixture(self, resolver):
        assert resolver.load_synthetic_fixture("empty", "array") == []

    def test_list_fixtures(self, resolver):
        assert resolver.list_fixtures("milestone", "rest") == ["get", "list_all"]
        assert resolver.list_fixtures("unknown") == []

    def test_load_with_vars(self, resolver, fixtures_root):
        """Test ${VAR} placeholders are substituted and unknown ones kept."""
        path = fixtures_root / "graphql" / "repo" / "template.json"
        path.parent.mkdir(parents=True)
        path.write_text('{"owner": "${OWNER}", "repo": "${REPO}", "n": ${NUMBER}}', encoding='utf-8')

        body = resolver.load_fixture_with_vars("repo", "template", OWNER="acme", NUMBER=7, REPO="widgets")

        assert body == {"owner": "acme", "repo": "widgets", "n": 7}

    def test_default_root_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GHMOCK_FIXTURES_DIR", str(tmp_path))
        assert FixtureResolver().root == tmp_path
