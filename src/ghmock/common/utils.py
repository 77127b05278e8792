"""
ghmock Common Utilities

JSON helpers and environment lookups shared across the mock and drift modules.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from .errors import MalformedResponse

DEFAULT_FIXTURES_DIR = "tests/fixtures"
DEFAULT_DEFAULTS_DIR = "tests/mocks/defaults"


def parse_json_text(text: str, source: str = "response") -> Any:
    """
    Parse JSON text, raising MalformedResponse on failure.

    Args:
        text: JSON text
        source: Label used in the error message

    Returns:
        Parsed JSON value
    """
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedResponse(f"Malformed {source}: {e}") from e


def ensure_json_value(value: Any, source: str = "response") -> Any:
    """
    Check that a Python value is representable as strict JSON.

    Returns the value unchanged; raises MalformedResponse otherwise.
    """
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Malformed {source}: {e}") from e
    return value


def load_json_file(path: Path, source: Optional[str] = None) -> Any:
    """Load and parse a JSON file, raising MalformedResponse if invalid."""
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    return parse_json_text(text, source or str(path))


def write_json_file(path: Path, data: Any) -> None:
    """Write pretty-printed JSON with a trailing newline."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write('\n')


def get_fixtures_root() -> Path:
    """Fixture root from GHMOCK_FIXTURES_DIR, defaulting to tests/fixtures."""
    return Path(os.environ.get('GHMOCK_FIXTURES_DIR', DEFAULT_FIXTURES_DIR))


def get_defaults_dir() -> Path:
    """Default rule set directory from GHMOCK_DEFAULTS_DIR."""
    return Path(os.environ.get('GHMOCK_DEFAULTS_DIR', DEFAULT_DEFAULTS_DIR))


def get_github_token() -> Optional[str]:
    """
    Read a GitHub token from the environment.

    Tokens are only ever read from GITHUB_TOKEN or GH_TOKEN, never from CLI
    arguments, so they stay out of process lists and shell history.
    """
    return os.environ.get('GITHUB_TOKEN') or os.environ.get('GH_TOKEN')
