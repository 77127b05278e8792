"""
ghmock Request Signatures

Normalizes simulated requests into the strings matched against rule patterns.

Each signature carries an ordered list of match strategies. The dispatcher tries
them in order and stops at the first strategy that selects a rule:

- GraphQL: operation name, then the raw query text
- REST:    METHOD:endpoint, then endpoint, then a loose method-agnostic pass
- CLI:     "command subcommand", then "command"
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from .rules import Category, MockRule

OPERATION_NAME_PATTERN = re.compile(r'\b(?:query|mutation|subscription)\s+([A-Za-z_]\w*)')
METHOD_PREFIX_PATTERN = re.compile(r'^\^?[A-Z]+:')


@dataclass(frozen=True)
class MatchStrategy:
    """One pass of the fallback chain."""

    name: str
    value: str
    test: Callable[[MockRule, str], bool] = field(compare=False, repr=False)

    def selects(self, rule: MockRule) -> bool:
        return self.test(rule, self.value)


def _pattern_search(rule: MockRule, value: str) -> bool:
    return rule.matches(value)


def _loose_search(rule: MockRule, value: str) -> bool:
    """Match the rule pattern against the endpoint, ignoring any method prefix."""
    pattern = METHOD_PREFIX_PATTERN.sub('', rule.pattern)
    try:
        return re.search(pattern, value, re.IGNORECASE) is not None
    except re.error:
        return False


@dataclass(frozen=True)
class RequestSignature:
    """Normalized identity of one simulated call."""

    category: Category
    primary: str
    strategies: Sequence[MatchStrategy] = field(default_factory=tuple)

    def __str__(self) -> str:
        return self.primary


def extract_operation_name(query: str) -> str:
    """
    Extract the GraphQL operation name from a query document.

    Returns an empty string for anonymous operations.
    """
    match = OPERATION_NAME_PATTERN.search(query or '')
    return match.group(1) if match else ''


def normalize_endpoint(endpoint: str) -> str:
    """Strip surrounding whitespace and a leading slash."""
    return (endpoint or '').strip().lstrip('/')


def graphql_signature(query: str) -> RequestSignature:
    """Signature for a GraphQL request (operation name, or full text if unnamed)."""
    query = query or ''
    name = extract_operation_name(query)
    primary = name or query

    strategies: List[MatchStrategy] = [MatchStrategy('operation', primary, _pattern_search)]
    if name and query != name:
        strategies.append(MatchStrategy('raw-query', query, _pattern_search))

    return RequestSignature(Category.GRAPHQL, primary, tuple(strategies))


def rest_signature(method: str, endpoint: str) -> RequestSignature:
    """Signature for a REST request."""
    method = (method or 'GET').upper()
    endpoint = normalize_endpoint(endpoint)
    prefixed = f"{method}:{endpoint}"

    strategies = (
        MatchStrategy('prefixed', prefixed, _pattern_search),
        MatchStrategy('endpoint', endpoint, _pattern_search),
        MatchStrategy('loose', endpoint, _loose_search),
    )
    return RequestSignature(Category.REST, prefixed, strategies)


def cli_signature(command: str, args: Sequence[str] = ()) -> RequestSignature:
    """Signature for a gh CLI command such as ``secret list``."""
    subcommand = args[0] if args else ''
    full = f"{command} {subcommand}".strip()

    strategies: List[MatchStrategy] = [MatchStrategy('command', full, _pattern_search)]
    if full != command:
        strategies.append(MatchStrategy('command-only', command, _pattern_search))

    return RequestSignature(Category.CLI, full, tuple(strategies))
