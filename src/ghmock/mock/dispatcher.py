"""
ghmock Request Dispatcher

Classifies simulated gh calls, records them, and resolves them against the
session's rules.

Resolution is first-match-wins. For each strategy in the signature's fallback
chain the session's candidate rules are scanned in precedence order; the first
rule whose pattern matches is selected and its response resolved.

Misses:
- GraphQL and REST produce an explicit "unregistered request" error payload
  (DispatchResult.unwrap() raises UnregisteredRequest)
- CLI falls back to empty collections so unasserted side paths keep working
"""

import copy
import logging
import shlex
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..common.errors import UnregisteredRequest
from .fixtures import FixtureResolver
from .registry import RegistrySession
from .rules import Category, MockRule
from .signature import (
    RequestSignature,
    cli_signature,
    graphql_signature,
    rest_signature,
)

# Empty results returned for unmatched CLI commands
CLI_EMPTY_DEFAULTS: Dict[str, Any] = {
    'secret': [],
    'variable': [],
    'project': {'items': []},
}

# gh api flags that take a value
API_VALUE_FLAGS = {
    '-X', '--method',
    '-f', '--raw-field',
    '-F', '--field',
    '-H', '--header',
    '-q', '--jq',
    '-t', '--template',
    '-p', '--preview',
    '--input', '--cache', '--hostname',
}
API_FIELD_FLAGS = {'-f', '--raw-field', '-F', '--field'}


@dataclass
class DispatchResult:
    """Outcome of dispatching one simulated request."""

    category: Category
    signature: str
    matched: bool
    body: Any = None
    rule: Optional[MockRule] = None
    strategy: str = ""
    defaulted: bool = False
    reason: str = ""

    @property
    def is_error(self) -> bool:
        """True for an unregistered GraphQL/REST request."""
        return not self.matched and not self.defaulted

    def unwrap(self) -> Any:
        """
        Return the response body.

        Raises:
            UnregisteredRequest: If no rule matched a GraphQL/REST request
        """
        if self.is_error:
            raise UnregisteredRequest(self.category.value, self.signature, self.body)
        return self.body

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'category': self.category.value,
            'signature': self.signature,
            'matched': self.matched,
            'defaulted': self.defaulted,
            'strategy': self.strategy,
            'pattern': self.rule.pattern if self.rule else None,
            'reason': self.reason,
        }


def _split_field(value: str) -> Tuple[str, str]:
    key, _, field_value = value.partition('=')
    return key, field_value


def classify_gh_args(argv: Sequence[str]) -> Tuple[Category, Any]:
    """
    Classify a gh invocation by protocol category.

    Returns:
        (Category.GRAPHQL, query) for ``gh api graphql -f query=...``
        (Category.REST, (method, endpoint)) for ``gh api <endpoint>``
        (Category.CLI, [command, *args]) for anything else

    Example:
        classify_gh_args(['api', 'repos/o/r/milestones', '-X', 'POST'])
        # -> (Category.REST, ('POST', 'repos/o/r/milestones'))
    """
    tokens = list(argv)
    if not tokens:
        raise ValueError("Empty gh invocation")

    if tokens[0] != 'api':
        return Category.CLI, tokens

    positionals: List[str] = []
    fields: Dict[str, str] = {}
    method: Optional[str] = None

    i = 1
    while i < len(tokens):
        token = tokens[i]
        flag, has_inline, inline_value = token.partition('=') if token.startswith('--') else (token, '', '')

        if flag in API_VALUE_FLAGS:
            if has_inline:
                value = inline_value
            else:
                i += 1
                value = tokens[i] if i < len(tokens) else ''
            if flag in ('-X', '--method'):
                method = value.upper()
            elif flag in API_FIELD_FLAGS:
                key, field_value = _split_field(value)
                fields[key] = field_value
        elif token.startswith('-X') and len(token) > 2:
            method = token[2:].upper()
        elif not token.startswith('-'):
            positionals.append(token)
        i += 1

    endpoint = positionals[0] if positionals else ''

    if endpoint == 'graphql':
        return Category.GRAPHQL, fields.get('query', '')

    # gh switches to POST when request fields are present
    if method is None:
        method = 'POST' if fields else 'GET'
    return Category.REST, (method, endpoint)


class RequestDispatcher:
    """
    Routes simulated requests to canned responses.

    Example:
        dispatcher = RequestDispatcher(session)
        result = dispatcher.rest('GET', 'repos/acme/widgets/milestones')
        if result.matched:
            milestones = result.body
    """

    def __init__(self, session: RegistrySession, resolver: Optional[FixtureResolver] = None):
        """
        Initialize dispatcher.

        Args:
            session: Registry session holding rules and the call log
            resolver: Fixture resolver (defaults to the session's)
        """
        self.session = session
        self.resolver = resolver or session.resolver
        self.logger = logging.getLogger("ghmock.dispatcher")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def graphql(self, query: str) -> DispatchResult:
        return self._dispatch(graphql_signature(query))

    def rest(self, method: str, endpoint: str) -> DispatchResult:
        return self._dispatch(rest_signature(method, endpoint))

    def cli(self, command: str, *args: str) -> DispatchResult:
        return self._dispatch(cli_signature(command, [a for a in args if not a.startswith('-')]))

    def dispatch(self, category: Union[str, Category], request: Any) -> DispatchResult:
        """
        Dispatch a request of any category.

        Args:
            category: graphql, rest or cli
            request: Query text (GraphQL); (method, endpoint) or "METHOD endpoint" (REST);
                command tokens or a command string (CLI)
        """
        category = Category.parse(category)

        if category == Category.GRAPHQL:
            return self.graphql(request)

        if category == Category.REST:
            if isinstance(request, str):
                parts = request.split(None, 1)
                method, endpoint = (parts[0], parts[1]) if len(parts) == 2 else ('GET', request)
            else:
                method, endpoint = request
            return self.rest(method, endpoint)

        tokens = shlex.split(request) if isinstance(request, str) else list(request)
        if not tokens:
            raise ValueError("CLI request needs at least a command")
        return self.cli(tokens[0], *tokens[1:])

    def handle_argv(self, argv: Iterable[str]) -> DispatchResult:
        """Classify and dispatch a raw gh argument vector."""
        category, request = classify_gh_args(list(argv))
        return self.dispatch(category, request)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _dispatch(self, signature: RequestSignature) -> DispatchResult:
        category = signature.category
        self.session.recorder.record(category, signature.primary)

        candidates = self.session.candidates(category)
        for strategy in signature.strategies:
            for rule in candidates:
                if strategy.selects(rule):
                    self.logger.debug(
                        f"{category.value} '{signature.primary}' matched '{rule.pattern}' ({strategy.name})"
                    )
                    return DispatchResult(
                        category=category,
                        signature=signature.primary,
                        matched=True,
                        body=self.resolver.resolve(rule.response),
                        rule=rule,
                        strategy=strategy.name,
                        reason=f"Matched pattern '{rule.pattern}' via {strategy.name}",
                    )

        return self._miss(signature)

    def _miss(self, signature: RequestSignature) -> DispatchResult:
        category = signature.category

        if category == Category.CLI:
            command = signature.primary.split(' ', 1)[0]
            body = copy.deepcopy(CLI_EMPTY_DEFAULTS.get(command))
            self.logger.debug(f"No mock for cli '{signature.primary}', returning empty default")
            return DispatchResult(
                category=category,
                signature=signature.primary,
                matched=False,
                body=body,
                defaulted=True,
                reason="No mock registered; empty default returned",
            )

        if category == Category.GRAPHQL:
            message = f"No mock registered for GraphQL query: {signature.primary}"
            payload: Dict[str, Any] = {'errors': [{'message': message}]}
        else:
            method, _, endpoint = signature.primary.partition(':')
            message = f"No mock registered for: {method} {endpoint}"
            payload = {'message': message, 'status': 404}

        self.logger.warning(message)
        return DispatchResult(
            category=category,
            signature=signature.primary,
            matched=False,
            body=payload,
            reason=message,
        )
