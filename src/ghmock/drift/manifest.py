"""
ghmock Recording Manifest

YAML description of every recorded fixture: how to fetch it live, how to
sanitize it, and when it was last recorded.

    fixtures:
      identity:
        viewer:
          type: graphql
          query: "query { viewer { login name } }"
      milestone:
        list_all:
          type: rest
          endpoint: repos/{owner}/{repo}/milestones
          method: GET
          sanitize:
            - path: "[*].creator.login"
              value: test-user
        get_one:
          type: rest
          endpoint: repos/{owner}/{repo}/milestones/{milestone_number}
          setup:
            - create_milestone: {title: "Fixture milestone", capture: milestone_number}
"""

import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import yaml

from ..common.errors import ManifestError

DEFAULT_MANIFEST_NAME = "recording_manifest.yaml"
FIXTURE_TYPES = ("graphql", "rest")
PLACEHOLDER_PATTERN = re.compile(r'\{([A-Za-z_][A-Za-z0-9_]*)\}')


def default_test_org() -> str:
    return os.environ.get('GHMOCK_TEST_ORG', 'test-org')


def default_test_repo() -> str:
    return os.environ.get('GHMOCK_TEST_REPO', 'test-repo')


@dataclass(frozen=True)
class ProbeRequest:
    """Descriptor handed to a live probe."""

    type: str
    query: Optional[str] = None
    variables: Dict[str, Any] = field(default_factory=dict)
    endpoint: Optional[str] = None
    method: str = "GET"

    def describe(self) -> str:
        if self.type == "graphql":
            first_line = (self.query or '').strip().splitlines()[0] if self.query else ''
            return f"graphql {first_line[:60]}"
        return f"{self.method} {self.endpoint}"


@dataclass
class FixtureSpec:
    """One manifest entry."""

    domain: str
    name: str
    type: str
    query: Optional[str] = None
    variables: Dict[str, Any] = field(default_factory=dict)
    endpoint: Optional[str] = None
    method: str = "GET"
    test_org: Optional[str] = None
    test_repo: Optional[str] = None
    setup: List[Any] = field(default_factory=list)
    sanitize: List[Dict[str, Any]] = field(default_factory=list)
    last_recorded: Optional[str] = None

    @classmethod
    def from_dict(cls, domain: str, name: str, data: Dict[str, Any]) -> 'FixtureSpec':
        """Create FixtureSpec from a manifest mapping."""
        if not isinstance(data, dict):
            raise ManifestError(f"Fixture {domain}/{name} must be a mapping")
        return cls(
            domain=domain,
            name=name,
            type=str(data.get('type') or ''),
            query=data.get('query'),
            variables=data.get('variables') or {},
            endpoint=data.get('endpoint'),
            method=str(data.get('method') or 'GET').upper(),
            test_org=data.get('test_org'),
            test_repo=data.get('test_repo'),
            setup=data.get('setup') or [],
            sanitize=data.get('sanitize') or [],
            last_recorded=data.get('last_recorded'),
        )

    @property
    def fixture_id(self) -> str:
        return f"{self.domain}/{self.name}"

    @property
    def relative_path(self) -> str:
        """Path under the fixture root: <type>/<domain>/<name>.json."""
        return f"{self.type}/{self.domain}/{self.name}.json"

    def fixture_path(self, root: Union[str, Path]) -> Path:
        return Path(root) / self.relative_path

    @property
    def is_synthetic(self) -> bool:
        return '_synthetic' in self.relative_path

    @property
    def requires_setup(self) -> bool:
        return bool(self.setup)

    def validate(self) -> List[str]:
        """Problems with this entry; empty when it can be probed."""
        problems = []
        if self.type not in FIXTURE_TYPES:
            problems.append(f"unknown fixture type '{self.type}'")
        elif self.type == "graphql" and not self.query:
            problems.append("no query defined")
        elif self.type == "rest" and not self.endpoint:
            problems.append("no endpoint defined")
        return problems

    def resolve_endpoint(self, captures: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """
        Substitute {owner}, {repo} and captured values into the endpoint.

        Unknown placeholders are left in place.
        """
        if not self.endpoint:
            return self.endpoint

        values: Dict[str, Any] = {
            'owner': self.test_org or default_test_org(),
            'repo': self.test_repo or default_test_repo(),
        }
        values.update(captures or {})

        def replacer(match):
            key = match.group(1)
            return str(values[key]) if key in values else match.group(0)

        return PLACEHOLDER_PATTERN.sub(replacer, self.endpoint)

    def is_dynamic(self, captures: Optional[Dict[str, Any]] = None) -> bool:
        """True when the endpoint still has an unresolved placeholder."""
        endpoint = self.resolve_endpoint(captures)
        return bool(endpoint and PLACEHOLDER_PATTERN.search(endpoint))

    def to_probe_request(self, captures: Optional[Dict[str, Any]] = None) -> ProbeRequest:
        if self.type == "graphql":
            return ProbeRequest(type="graphql", query=self.query, variables=dict(self.variables))
        return ProbeRequest(
            type="rest",
            endpoint=self.resolve_endpoint(captures),
            method=self.method,
        )


class FixtureManifest:
    """
    Loaded recording manifest.

    Example:
        manifest = FixtureManifest.load('tests/fixtures/recording_manifest.yaml')
        for spec in manifest.iter_domain('milestone'):
            print(spec.fixture_id, spec.relative_path)
    """

    def __init__(self, data: Dict[str, Any], path: Optional[Path] = None):
        self.path = path
        self.data = data
        self.fixtures: Dict[str, Dict[str, FixtureSpec]] = {}

        fixtures = data.get('fixtures') or {}
        if not isinstance(fixtures, dict):
            raise ManifestError("Manifest 'fixtures' must be a mapping of domains")

        for domain, entries in fixtures.items():
            if not isinstance(entries, dict):
                raise ManifestError(f"Manifest domain '{domain}' must be a mapping of fixtures")
            self.fixtures[str(domain)] = {
                str(name): FixtureSpec.from_dict(str(domain), str(name), entry)
                for name, entry in entries.items()
            }

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'FixtureManifest':
        """
        Load manifest from YAML file.

        Raises:
            ManifestError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.is_file():
            raise ManifestError(f"Manifest file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ManifestError(f"Could not parse manifest {path}: {e}") from e
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest {path} must be a mapping")
        return cls(data, path)

    def domains(self) -> List[str]:
        return list(self.fixtures.keys())

    def has_domain(self, domain: str) -> bool:
        return domain in self.fixtures

    def iter_domain(self, domain: str) -> Iterator[FixtureSpec]:
        return iter(self.fixtures.get(domain, {}).values())

    def __iter__(self) -> Iterator[FixtureSpec]:
        for domain in self.fixtures:
            yield from self.iter_domain(domain)

    def get(self, domain: str, name: str) -> FixtureSpec:
        try:
            return self.fixtures[domain][name]
        except KeyError:
            raise ManifestError(f"Fixture {domain}/{name} not found in manifest")

    def mark_recorded(self, domain: str, name: str, timestamp: Optional[str] = None) -> str:
        """Stamp last_recorded on an entry (in memory; call save() to persist)."""
        timestamp = timestamp or datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')
        spec = self.get(domain, name)
        spec.last_recorded = timestamp
        self.data['fixtures'][domain][name]['last_recorded'] = timestamp
        return timestamp

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the manifest back as YAML, preserving key order."""
        target = Path(path) if path else self.path
        if target is None:
            raise ManifestError("Manifest has no path to save to")
        with open(target, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.data, f, sort_keys=False, allow_unicode=True)
        return target
