"""
ghmock pytest plugin

Registered through the ``pytest11`` entry point, so installing ghmock makes
these fixtures available to any test suite:

- ghmock_config: SessionConfig for the test (override to customize)
- mock_session: initialized RegistrySession, closed after the test
- mock_dispatcher: RequestDispatcher bound to mock_session

Default locations can be set in pytest.ini / pyproject.toml:

    [tool.pytest.ini_options]
    ghmock_defaults_dir = "tests/mocks/defaults"
    ghmock_fixtures_dir = "tests/fixtures"
"""

from pathlib import Path
from typing import Iterator, Optional

import pytest

from .mock.dispatcher import RequestDispatcher
from .mock.registry import RegistrySession, SessionConfig


def pytest_addoption(parser):
    parser.addini('ghmock_defaults_dir', help='Directory of default mock rule sets (*.yaml)')
    parser.addini('ghmock_fixtures_dir', help='Root directory for fixture references')


def _ini_path(config, name: str) -> Optional[Path]:
    value = config.getini(name)
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else Path(config.rootpath) / path


@pytest.fixture
def ghmock_config(request) -> SessionConfig:
    """Session configuration; ini options fill in the directories."""
    return SessionConfig(
        defaults_dir=_ini_path(request.config, 'ghmock_defaults_dir'),
        fixtures_root=_ini_path(request.config, 'ghmock_fixtures_dir'),
    )


@pytest.fixture
def mock_session(tmp_path, ghmock_config) -> Iterator[RegistrySession]:
    """Fresh registry session per test, using tmp_path as its directory."""
    session = RegistrySession(tmp_path / "ghmock", ghmock_config)
    session.init()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mock_dispatcher(mock_session) -> RequestDispatcher:
    return RequestDispatcher(mock_session)
