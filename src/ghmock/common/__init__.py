"""
ghmock Common Utilities

Shared errors and helpers used across ghmock modules.
"""

from .errors import (
    GhMockError,
    RuleError,
    RuleSetError,
    UnregisteredRequest,
    FixtureNotFound,
    MalformedResponse,
    LiveProbeFailure,
    SchemaExtractionFailure,
    SanitizationFailure,
    ManifestError,
)
from .utils import (
    parse_json_text,
    ensure_json_value,
    load_json_file,
    write_json_file,
    get_fixtures_root,
    get_defaults_dir,
    get_github_token,
)

__all__ = [
    'GhMockError',
    'RuleError',
    'RuleSetError',
    'UnregisteredRequest',
    'FixtureNotFound',
    'MalformedResponse',
    'LiveProbeFailure',
    'SchemaExtractionFailure',
    'SanitizationFailure',
    'ManifestError',
    'parse_json_text',
    'ensure_json_value',
    'load_json_file',
    'write_json_file',
    'get_fixtures_root',
    'get_defaults_dir',
    'get_github_token',
]
