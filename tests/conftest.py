"""
Shared fixtures for ghmock tests.
"""

import json
from pathlib import Path

import pytest

from ghmock.mock import RegistrySession, RequestDispatcher, SessionConfig

TESTS_DIR = Path(__file__).parent
SAMPLE_FIXTURES = TESTS_DIR / "fixtures"
SAMPLE_DEFAULTS = TESTS_DIR / "mocks" / "defaults"


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding='utf-8')
    return path


@pytest.fixture
def fixtures_root(tmp_path):
    """Temporary fixture root with a small set of recorded responses."""
    root = tmp_path / "fixtures"
    write_json(root / "graphql" / "thing" / "get.json", {"data": {"thing": {"id": "T_1", "name": "widget"}}})
    write_json(root / "rest" / "milestone" / "list_all.json", [{"number": 1, "title": "v1.0"}])
    write_json(root / "rest" / "milestone" / "get.json", {"number": 3, "title": "v3.0"})
    write_json(root / "_synthetic" / "empty" / "array.json", [])
    (root / "graphql" / "broken").mkdir(parents=True)
    (root / "graphql" / "broken" / "bad.json").write_text("{not json", encoding='utf-8')
    return root


@pytest.fixture
def defaults_dir(tmp_path):
    """Temporary directory of default rule sets."""
    directory = tmp_path / "defaults"
    directory.mkdir()
    (directory / "a_milestone.yaml").write_text(
        "mocks:\n"
        "  - pattern: \"milestones\"\n"
        "    type: rest\n"
        "    fixture: rest/milestone/list_all.json\n",
        encoding='utf-8',
    )
    (directory / "b_secret.yaml").write_text(
        "mocks:\n"
        "  - pattern: \"secret list\"\n"
        "    type: cli\n"
        "    response: '[{\"name\": \"DEPLOY_KEY\"}]'\n",
        encoding='utf-8',
    )
    return directory


@pytest.fixture
def session(tmp_path, fixtures_root, defaults_dir):
    """Initialized session with defaults loaded from defaults_dir."""
    config = SessionConfig(defaults_dir=defaults_dir, fixtures_root=fixtures_root)
    registry = RegistrySession(tmp_path / "session", config)
    registry.init()
    yield registry
    registry.close()


@pytest.fixture
def empty_session(tmp_path, fixtures_root):
    """Initialized session without default rules."""
    config = SessionConfig(load_defaults=False, fixtures_root=fixtures_root)
    registry = RegistrySession(tmp_path / "empty-session", config)
    registry.init()
    yield registry
    registry.close()


@pytest.fixture
def dispatcher(session):
    return RequestDispatcher(session)
