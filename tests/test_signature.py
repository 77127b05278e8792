"""
Tests for ghmock request signatures

Tests signature normalization and fallback chains for:
- GraphQL operation name extraction
- REST METHOD:endpoint signatures and the loose pass
- CLI command/subcommand signatures
"""

import pytest

from ghmock.mock.rules import Category, InlineBody, MockRule
from ghmock.mock.signature import (
    cli_signature,
    extract_operation_name,
    graphql_signature,
    normalize_endpoint,
    rest_signature,
)


def rule(pattern, category=Category.REST):
    return MockRule(pattern, category, InlineBody("{}"))


class TestOperationName:
    """Test GraphQL operation name extraction."""

    @pytest.mark.parametrize("query,expected", [
        ("query fetchThing { thing { id } }", "fetchThing"),
        ("mutation createMilestone($t: String!) { x }", "createMilestone"),
        ("subscription onEvent { e }", "onEvent"),
        ("\n  query   spaced_Name\n{ a }", "spaced_Name"),
        ("{ viewer { login } }", ""),
        ("", ""),
    ])
    def test_extract(self, query, expected):
        assert extract_operation_name(query) == expected


class TestGraphQLSignature:
    """Test GraphQL signature and strategies."""

    def test_named_query(self):
        """Test named queries use the operation name, then the raw text."""
        query = "query fetchThing { thing { id } }"
        sig = graphql_signature(query)

        assert sig.category == Category.GRAPHQL
        assert sig.primary == "fetchThing"
        assert [s.name for s in sig.strategies] == ["operation", "raw-query"]
        assert sig.strategies[1].value == query

    def test_anonymous_query(self):
        """Test anonymous queries match on the full text only."""
        sig = graphql_signature("{ viewer { login } }")
        assert sig.primary == "{ viewer { login } }"
        assert [s.name for s in sig.strategies] == ["operation"]

    def test_str_is_primary(self):
        assert str(graphql_signature("query a { b }")) == "a"


class TestRestSignature:
    """Test REST signatures."""

    def test_primary_is_method_prefixed(self):
        sig = rest_signature("get", "/repos/o/r/milestones")
        assert sig.primary == "GET:repos/o/r/milestones"
        assert [s.name for s in sig.strategies] == ["prefixed", "endpoint", "loose"]

    def test_normalize_endpoint(self):
        assert normalize_endpoint(" /user ") == "user"
        assert normalize_endpoint("") == ""

    def test_prefixed_strategy(self):
        sig = rest_signature("POST", "repos/o/r/milestones")
        assert sig.strategies[0].selects(rule("^POST:repos/.*/milestones$"))
        assert not sig.strategies[0].selects(rule("^GET:repos/.*/milestones$"))

    def test_endpoint_strategy(self):
        """Test bare endpoint patterns match any method."""
        sig = rest_signature("DELETE", "repos/o/r/milestones/3")
        assert sig.strategies[1].selects(rule("^repos/.*/milestones/[0-9]+$"))

    def test_loose_strategy_ignores_method_and_case(self):
        """Test the loose pass strips the method prefix from the rule."""
        sig = rest_signature("PATCH", "repos/o/r/Milestones/3")
        loose = sig.strategies[2]
        assert loose.selects(rule("GET:repos/o/r/milestones"))
        assert loose.selects(rule("^GET:repos/.*/milestones"))
        assert not loose.selects(rule("GET:labels"))


class TestCliSignature:
    """Test CLI signatures."""

    def test_command_and_subcommand(self):
        sig = cli_signature("secret", ["list", "--repo"])
        assert sig.primary == "secret list"
        assert [(s.name, s.value) for s in sig.strategies] == [
            ("command", "secret list"),
            ("command-only", "secret"),
        ]

    def test_command_only(self):
        sig = cli_signature("status")
        assert sig.primary == "status"
        assert [s.name for s in sig.strategies] == ["command"]
