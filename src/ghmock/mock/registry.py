"""
ghmock Mock Registry

Ordered store of mock rules and the call log for one isolated test session.

A RegistrySession owns everything a test run registers and records. It is
populated first from the default rule sets (one YAML file per domain), then by
test-time overrides, and torn down as a unit when the session closes.
"""

import json
import logging
import shutil
import tempfile
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..common.errors import RuleSetError
from ..common.utils import get_defaults_dir
from .fixtures import FixtureResolver
from .recorder import CallRecord, CallRecorder
from .rules import (
    Category,
    InlineBody,
    MockRule,
    RuleOrigin,
    load_rule_set,
    response_source,
)

CALLS_LOG_NAME = "mock_calls.log"


@dataclass
class SessionConfig:
    """Configuration for a registry session."""

    # Default rule sets (*.yaml); None means GHMOCK_DEFAULTS_DIR or tests/mocks/defaults
    defaults_dir: Optional[Path] = None
    load_defaults: bool = True

    # Fixture root used to resolve fixture references
    fixtures_root: Optional[Path] = None

    # Search test-time overrides before defaults; False restores strict registration order
    overrides_first: bool = True

    # Mirror the call log to <session_dir>/mock_calls.log
    persist_calls: bool = True


class RegistrySession:
    """
    Rule registry and call log scoped to one test session.

    Example:
        with open_session(config) as session:
            session.mock_graphql('fetchThing', 'graphql/thing/get.json')
            dispatcher = RequestDispatcher(session)
            body = dispatcher.graphql('query fetchThing { thing { id } }').unwrap()
            assert session.call_count('fetchThing') == 1
    """

    def __init__(
        self,
        session_dir: Optional[Union[str, Path]] = None,
        config: Optional[SessionConfig] = None
    ):
        """
        Create an empty session. Call init() to load default rules.

        Args:
            session_dir: Directory for session state (call log mirror)
            config: Session configuration
        """
        self.config = config or SessionConfig()
        self.logger = logging.getLogger("ghmock.registry")
        self.session_dir = Path(session_dir) if session_dir else None
        self.resolver = FixtureResolver(self.config.fixtures_root)
        self._rules: List[MockRule] = []
        self._owns_dir = False
        self._closed = False
        self.recorder = CallRecorder(self._calls_log_path())

    def _calls_log_path(self) -> Optional[Path]:
        if self.session_dir and self.config.persist_calls:
            return self.session_dir / CALLS_LOG_NAME
        return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, session_dir: Optional[Union[str, Path]] = None) -> 'RegistrySession':
        """
        Reset the session and load the default rule sets.

        Raises:
            RuleSetError: If a default rule set cannot be parsed
        """
        if session_dir is not None:
            self.session_dir = Path(session_dir)
        if self.session_dir:
            self.session_dir.mkdir(parents=True, exist_ok=True)

        self._rules = []
        self.recorder = CallRecorder(self._calls_log_path())
        self._closed = False

        if self.config.load_defaults:
            self.load_defaults()
        return self

    def load_defaults(self) -> int:
        """
        Append every default rule set, files in name order, rules in file order.

        Returns:
            Number of rules loaded
        """
        defaults_dir = Path(self.config.defaults_dir) if self.config.defaults_dir else get_defaults_dir()
        if not defaults_dir.is_dir():
            self.logger.debug(f"No default rule sets at {defaults_dir}")
            return 0

        loaded = 0
        for config_file in sorted(defaults_dir.glob("*.yaml")):
            try:
                rules = load_rule_set(config_file, origin=RuleOrigin.DEFAULT)
            except RuleSetError as e:
                self.logger.error(f"Failed to load default mocks: {e}")
                raise
            self._rules.extend(rules)
            loaded += len(rules)
            self.logger.debug(f"Loaded {len(rules)} default rules from {config_file.name}")

        return loaded

    def load_rule_set(self, path: Union[str, Path]) -> int:
        """Append an extra rule set file as test-time overrides."""
        rules = load_rule_set(path, origin=RuleOrigin.OVERRIDE)
        self._rules.extend(rules)
        return len(rules)

    def clear(self) -> None:
        """Empty the rule list and the call log. Defaults are not reloaded."""
        self._rules = []
        self.recorder.clear()

    def close(self) -> None:
        """Discard all session state, removing the session directory if owned."""
        if self._closed:
            return
        self._closed = True
        self._rules = []
        self.recorder.clear()
        if self._owns_dir and self.session_dir and self.session_dir.exists():
            shutil.rmtree(self.session_dir, ignore_errors=True)
            self.logger.debug(f"Removed session directory {self.session_dir}")

    def __enter__(self) -> 'RegistrySession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, pattern: str, category: Union[str, Category], response: Any) -> MockRule:
        """
        Append a rule. Identical patterns are not de-duplicated.

        Args:
            pattern: Regular expression searched against request signatures
            category: graphql, rest or cli
            response: Fixture path (``*.json``), FixtureRef, InlineBody, or inline JSON
        """
        rule = MockRule(
            pattern=pattern,
            category=Category.parse(category),
            response=response_source(response),
            origin=RuleOrigin.OVERRIDE,
        )
        self._rules.append(rule)
        return rule

    def add_rule(self, rule: MockRule) -> MockRule:
        """Append a prebuilt rule as is; its origin decides its precedence tier."""
        self._rules.append(rule)
        return rule

    def mock_graphql(self, query_name: str, fixture: Any) -> MockRule:
        return self.register(query_name, Category.GRAPHQL, fixture)

    def mock_rest(self, endpoint: str, fixture: Any, method: str = "GET") -> MockRule:
        """Register a REST response keyed on ``METHOD:endpoint``."""
        return self.register(f"{method.upper()}:{endpoint}", Category.REST, fixture)

    def mock_json(self, pattern: str, category: Union[str, Category], body: Any) -> MockRule:
        """Register an inline JSON response (text or Python value)."""
        return self.register(pattern, category, InlineBody(body))

    def mock_error(
        self,
        pattern: str,
        category: Union[str, Category],
        status: int,
        message: str = "Error"
    ) -> MockRule:
        """Register an error payload in the platform's REST error shape."""
        return self.mock_json(pattern, category, {'message': message, 'status': status})

    def mock_graphql_error(self, query_name: str, message: str) -> MockRule:
        return self.mock_json(query_name, Category.GRAPHQL, {'errors': [{'message': message}]})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_rules(self) -> Tuple[MockRule, ...]:
        """All rules in registration order."""
        return tuple(self._rules)

    def candidates(self, category: Category) -> List[MockRule]:
        """Rules of one category in match-precedence order."""
        rules = [r for r in self._rules if r.category == category]
        if not self.config.overrides_first:
            return rules
        overrides = [r for r in rules if r.origin == RuleOrigin.OVERRIDE]
        defaults = [r for r in rules if r.origin == RuleOrigin.DEFAULT]
        return overrides + defaults

    def list_calls(self) -> Tuple[CallRecord, ...]:
        return self.recorder.calls

    def was_called(self, pattern: str) -> bool:
        return self.recorder.was_called(pattern)

    def call_count(self, pattern: str) -> int:
        return self.recorder.call_count(pattern)

    def assert_called_at_least(self, pattern: str, min_count: int = 1) -> None:
        self.recorder.assert_called_at_least(pattern, min_count)

    def stats(self) -> Dict[str, Any]:
        """Rule and call counts, with rules broken down by category."""
        by_type = Counter(r.category.value for r in self._rules)
        return {
            'registered_mocks': len(self._rules),
            'total_calls': len(self.recorder),
            'by_type': dict(sorted(by_type.items())),
        }

    def debug_dump(self) -> str:
        """Printable registry state and call log."""
        lines = ["=== Mock Registry ==="]
        if self._rules:
            lines.extend(json.dumps(r.to_dict()) for r in self._rules)
        else:
            lines.append("(empty)")
        lines.append("")
        lines.append("=== Call Log ===")
        lines.append(self.recorder.dump())
        return '\n'.join(lines)


@contextmanager
def open_session(
    config: Optional[SessionConfig] = None,
    session_dir: Optional[Union[str, Path]] = None
) -> Iterator[RegistrySession]:
    """
    Open an initialized session and guarantee teardown on every exit path.

    When no session_dir is given a temporary directory is created and removed
    when the block exits, normally or through an exception.
    """
    owns_dir = session_dir is None
    directory = Path(tempfile.mkdtemp(prefix="ghmock-")) if owns_dir else Path(session_dir)

    session = RegistrySession(directory, config)
    session._owns_dir = owns_dir
    try:
        session.init()
        yield session
    finally:
        session.close()
