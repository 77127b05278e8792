"""
ghmock Mock Rules

Declarative mapping from a request pattern and category to a canned response.

Rule sets are YAML documents of the form:

    mocks:
      - pattern: "fetch_repo_milestones"
        type: graphql
        fixture: graphql/milestone/list.json
      - pattern: "GET:repos/.*/milestones$"
        type: rest
        fixture: rest/milestone/list_all.json
      - pattern: "secret list"
        type: cli
        response: '[]'
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Pattern, Union

import yaml

from ..common.errors import RuleError, RuleSetError


class Category(str, Enum):
    """Protocol category of a simulated request."""

    GRAPHQL = "graphql"
    REST = "rest"
    CLI = "cli"

    @classmethod
    def parse(cls, value: Union[str, 'Category']) -> 'Category':
        """Parse a category from its name, case-insensitively."""
        if isinstance(value, Category):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ', '.join(c.value for c in cls)
            raise RuleError(f"Unknown request category '{value}' (expected one of: {valid})")


class RuleOrigin(str, Enum):
    """Where a rule came from; overrides are searched before defaults."""

    DEFAULT = "default"
    OVERRIDE = "override"


@dataclass(frozen=True)
class FixtureRef:
    """Response loaded from a fixture file."""

    path: str

    def describe(self) -> str:
        return f"fixture:{self.path}"


@dataclass(frozen=True)
class InlineBody:
    """Response given inline, as JSON text or an already-parsed value."""

    body: Any

    def describe(self) -> str:
        text = self.body if isinstance(self.body, str) else json.dumps(self.body)
        if len(text) > 60:
            text = text[:57] + "..."
        return f"inline:{text}"


ResponseSource = Union[FixtureRef, InlineBody]


def response_source(value: Any) -> ResponseSource:
    """
    Coerce a response argument into a ResponseSource.

    Strings ending in ``.json`` are fixture references; any other value is an
    inline body.
    """
    if isinstance(value, (FixtureRef, InlineBody)):
        return value
    if isinstance(value, Path):
        return FixtureRef(str(value))
    if isinstance(value, str) and value.strip().endswith('.json'):
        return FixtureRef(value.strip())
    return InlineBody(value)


@dataclass(frozen=True)
class MockRule:
    """A single request-matching rule."""

    pattern: str
    category: Category
    response: ResponseSource
    origin: RuleOrigin = RuleOrigin.OVERRIDE
    regex: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'category', Category.parse(self.category))
        if not isinstance(self.pattern, str) or not self.pattern:
            raise RuleError("Rule pattern must be a non-empty string")
        try:
            compiled = re.compile(self.pattern)
        except re.error as e:
            raise RuleError(f"Invalid rule pattern '{self.pattern}': {e}") from e
        object.__setattr__(self, 'regex', compiled)

    def matches(self, signature: str) -> bool:
        """True if the pattern is found anywhere in the signature."""
        return self.regex.search(signature) is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'pattern': self.pattern,
            'type': self.category.value,
            'response': self.response.describe(),
            'origin': self.origin.value,
        }


def load_rule_set(path: Union[str, Path], origin: RuleOrigin = RuleOrigin.DEFAULT) -> List[MockRule]:
    """
    Load rules from a YAML rule set file, preserving file order.

    Args:
        path: Path to the rule set
        origin: Origin tag assigned to every loaded rule

    Returns:
        List of MockRule

    Raises:
        RuleSetError: If the file is missing, is not valid YAML, or an entry is invalid
    """
    path = Path(path)
    if not path.is_file():
        raise RuleSetError(f"Mock config not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RuleSetError(f"Could not parse rule set {path}: {e}") from e

    if data is None:
        return []

    if not isinstance(data, dict) or not isinstance(data.get('mocks', []), list):
        raise RuleSetError(f"Rule set {path} must contain a 'mocks' list")

    rules = []
    for index, entry in enumerate(data.get('mocks') or []):
        if not isinstance(entry, dict):
            raise RuleSetError(f"{path}: entry {index} is not a mapping")

        if 'fixture' in entry:
            source: ResponseSource = FixtureRef(str(entry['fixture']))
        elif 'response' in entry:
            source = InlineBody(entry['response'])
        else:
            raise RuleSetError(f"{path}: entry {index} has neither 'fixture' nor 'response'")

        try:
            rules.append(MockRule(
                pattern=entry.get('pattern'),
                category=entry.get('type'),
                response=source,
                origin=origin,
            ))
        except RuleError as e:
            raise RuleSetError(f"{path}: entry {index}: {e}") from e

    return rules
