"""
ghmock Fixture Resolver

Turns a rule's ResponseSource into a parsed JSON body and provides
domain-aware fixture loading for tests.

Fixture layout under the fixture root:

    <root>/graphql/<domain>/<name>.json
    <root>/rest/<domain>/<name>.json
    <root>/_synthetic/<category>/<name>.json
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Union

from ..common.errors import FixtureNotFound, MalformedResponse
from ..common.utils import ensure_json_value, get_fixtures_root, load_json_file, parse_json_text
from .rules import FixtureRef, InlineBody, ResponseSource

VARIABLE_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')


class FixtureResolver:
    """
    Resolves fixture references and inline bodies to JSON values.

    Example:
        resolver = FixtureResolver('tests/fixtures')
        body = resolver.resolve(FixtureRef('graphql/milestone/list.json'))
    """

    def __init__(self, root: Optional[Union[str, Path]] = None):
        """
        Initialize resolver.

        Args:
            root: Fixture root directory (defaults to GHMOCK_FIXTURES_DIR or tests/fixtures)
        """
        self.root = Path(root) if root is not None else get_fixtures_root()
        self.logger = logging.getLogger("ghmock.fixtures")

    def resolve(self, source: ResponseSource) -> Any:
        """
        Resolve a response source to a parsed JSON body.

        Raises:
            FixtureNotFound: If a fixture reference cannot be located
            MalformedResponse: If the body is not valid JSON
        """
        if isinstance(source, FixtureRef):
            return self.load_path(source.path)
        if isinstance(source, InlineBody):
            return self._resolve_inline(source.body)
        raise TypeError(f"Unsupported response source: {source!r}")

    def locate(self, fixture_path: str) -> Path:
        """Find a fixture relative to the root, then as a literal path."""
        candidates = [self.root / fixture_path, Path(fixture_path)]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise FixtureNotFound(fixture_path, searched=candidates)

    def load_path(self, fixture_path: str) -> Any:
        """Load and parse a fixture file."""
        path = self.locate(fixture_path)
        self.logger.debug(f"Loading fixture {path}")
        return load_json_file(path, f"fixture {fixture_path}")

    def _resolve_inline(self, body: Any) -> Any:
        if isinstance(body, (bytes, bytearray)):
            try:
                body = bytes(body).decode('utf-8')
            except UnicodeDecodeError as e:
                raise MalformedResponse(f"Malformed inline response: {e}") from e
        if isinstance(body, str):
            try:
                return json.loads(body)
            except json.JSONDecodeError as e:
                raise MalformedResponse(f"Malformed inline response: {e}") from e
        return ensure_json_value(body, "inline response")

    # ------------------------------------------------------------------
    # Domain-aware loading
    # ------------------------------------------------------------------

    def fixture_path(self, domain: str, name: str, fixture_type: str = "graphql") -> Path:
        """Path of a domain fixture, accepting names with or without .json."""
        base = self.root / fixture_type / domain
        path = base / f"{name}.json"
        if not path.is_file() and (base / name).is_file():
            return base / name
        return path

    def fixture_exists(self, domain: str, name: str, fixture_type: str = "graphql") -> bool:
        return self.fixture_path(domain, name, fixture_type).is_file()

    def load_fixture(self, domain: str, name: str, fixture_type: str = "graphql") -> Any:
        """
        Load a recorded fixture for a domain.

        Args:
            domain: Domain name (e.g. "milestone")
            name: Fixture name, with or without .json
            fixture_type: "graphql" or "rest"
        """
        path = self.fixture_path(domain, name, fixture_type)
        if not path.is_file():
            raise FixtureNotFound(f"{fixture_type}/{domain}/{name}", searched=[path])
        return self.load_path(str(path))

    def load_synthetic_fixture(self, category: str, name: str) -> Any:
        """Load a hand-crafted edge-case fixture from _synthetic/."""
        path = self.root / "_synthetic" / category / f"{name}.json"
        if not path.is_file():
            raise FixtureNotFound(f"_synthetic/{category}/{name}", searched=[path])
        return self.load_path(str(path))

    def list_fixtures(self, domain: str, fixture_type: str = "graphql") -> List[str]:
        """Sorted fixture names recorded for a domain."""
        directory = self.root / fixture_type / domain
        if not directory.is_dir():
            return []
        return sorted(p.stem for p in directory.glob("*.json") if p.is_file())

    def load_fixture_with_vars(
        self,
        domain: str,
        name: str,
        fixture_type: str = "graphql",
        **variables: Any
    ) -> Any:
        """
        Load a parameterized fixture, replacing ``${NAME}`` placeholders.

        Unknown placeholders are left untouched.
        """
        path = self.fixture_path(domain, name, fixture_type)
        if not path.is_file():
            raise FixtureNotFound(f"{fixture_type}/{domain}/{name}", searched=[path])

        text = path.read_text(encoding='utf-8')

        def replacer(match):
            key = match.group(1)
            return str(variables[key]) if key in variables else match.group(0)

        return parse_json_text(VARIABLE_PATTERN.sub(replacer, text), f"fixture {domain}/{name}")
