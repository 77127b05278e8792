"""
ghmock Fixture Sanitizer

Scrubs identifying data from recorded responses before they are committed.

Pipeline (in order):
1. Identity rules: logins, emails, avatar URLs, user/org names, node IDs,
   user/org URLs, html_url owners
2. Credential rules: tokens, secrets, clone/ssh/git URLs
3. Timestamps: every distinct ISO-8601 timestamp is replaced by a synthetic
   hourly sequence starting at 2024-01-01T00:00:00Z; chronological order and
   equality between timestamps are preserved
4. Manifest rules: ``{path, value}`` pairs applied with JSONPath
"""

import json
import logging
import re
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jsonpath_ng.ext import parse as jsonpath_parse

from ..common.errors import SanitizationFailure
from ..common.utils import write_json_file

TEST_USER = "test-user"
TEST_ORG = "test-org"
TEST_REPO = "test-repo"
TEST_EMAIL = "test@example.com"
TEST_AVATAR = f"https://avatars.githubusercontent.com/{TEST_USER}"

TIMESTAMP_BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)
TIMESTAMP_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}T')

# Node ID prefix -> replacement; first match wins
NODE_ID_PREFIXES = (
    ("I_", "I_SANITIZED_ISSUE"),
    ("PR_", "PR_SANITIZED_PR"),
    ("MDU6", "MDU6_SANITIZED_USER"),
    ("MDEw", "MDEw_SANITIZED_ORG"),
    ("PVT_", "PVT_SANITIZED_PROJECT"),
    ("PVTF_", "PVTF_SANITIZED_FIELD"),
    ("PVTI_", "PVTI_SANITIZED_ITEM"),
)

CREDENTIAL_REPLACEMENTS = {
    'token': "sanitized_token",
    'secret': "sanitized_secret",
    'ssh_url': f"git@github.com:{TEST_ORG}/{TEST_REPO}.git",
    'clone_url': f"https://github.com/{TEST_ORG}/{TEST_REPO}.git",
    'git_url': f"git://github.com/{TEST_ORG}/{TEST_REPO}.git",
}

_ISSUE_OR_PULL_URL = re.compile(r'/[^/]+/[^/]+/(issues|pull)')
_OWNER_URL = re.compile(r'github\.com/([^/]+)')


def sanitize_node_id(node_id: str) -> str:
    for prefix, replacement in NODE_ID_PREFIXES:
        if node_id.startswith(prefix):
            return replacement
    return node_id


def sanitize_url(url: str) -> str:
    url = re.sub(r'/users/[^/]+', f'/users/{TEST_USER}', url)
    return re.sub(r'/orgs/[^/]+', f'/orgs/{TEST_ORG}', url)


def sanitize_html_url(url: str) -> str:
    url = _ISSUE_OR_PULL_URL.sub(rf'/{TEST_ORG}/{TEST_REPO}/\1', url, count=1)

    def owner(match):
        if match.group(1) in (TEST_ORG, TEST_USER):
            return match.group(0)
        return f"github.com/{TEST_USER}"

    return _OWNER_URL.sub(owner, url, count=1)


def _sanitize_object(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Apply identity and credential rules to one object's own keys."""
    if obj.get('login'):
        obj['login'] = TEST_USER
    if obj.get('email'):
        obj['email'] = TEST_EMAIL
    for key in ('avatarUrl', 'avatar_url'):
        if obj.get(key):
            obj[key] = TEST_AVATAR
    # milestone/repo names are kept
    if obj.get('name') and obj.get('type') in ('User', 'Organization'):
        obj['name'] = "Test User"
    if isinstance(obj.get('id'), str):
        obj['id'] = sanitize_node_id(obj['id'])
    if isinstance(obj.get('url'), str):
        obj['url'] = sanitize_url(obj['url'])
    if isinstance(obj.get('html_url'), str):
        obj['html_url'] = sanitize_html_url(obj['html_url'])

    for key, replacement in CREDENTIAL_REPLACEMENTS.items():
        if obj.get(key):
            obj[key] = replacement
    return obj


def sanitize_identities(document: Any) -> Any:
    """Walk the document bottom-up applying identity and credential rules."""
    if isinstance(document, dict):
        return _sanitize_object({k: sanitize_identities(v) for k, v in document.items()})
    if isinstance(document, list):
        return [sanitize_identities(item) for item in document]
    return document


def _collect_timestamps(document: Any, found: set) -> None:
    if isinstance(document, dict):
        for value in document.values():
            _collect_timestamps(value, found)
    elif isinstance(document, list):
        for item in document:
            _collect_timestamps(item, found)
    elif isinstance(document, str) and TIMESTAMP_PATTERN.search(document):
        found.add(document)


def _timestamp_sort_key(value: str):
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        # free text containing a date sorts after real timestamps
        return (1, TIMESTAMP_BASE, value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (0, parsed, value)


def timestamp_mapping(document: Any) -> Dict[str, str]:
    """
    Map each distinct timestamp in the document to its synthetic value.

    The earliest timestamp becomes base + 1h, the next base + 2h, and so on.
    """
    found: set = set()
    _collect_timestamps(document, found)
    return {
        original: (TIMESTAMP_BASE + timedelta(hours=index)).strftime('%Y-%m-%dT%H:%M:%SZ')
        for index, original in enumerate(sorted(found, key=_timestamp_sort_key), start=1)
    }


def normalize_timestamps(document: Any) -> Any:
    mapping = timestamp_mapping(document)
    if not mapping:
        return document

    def replace(value: Any) -> Any:
        if isinstance(value, dict):
            return {k: replace(v) for k, v in value.items()}
        if isinstance(value, list):
            return [replace(item) for item in value]
        if isinstance(value, str):
            return mapping.get(value, value)
        return value

    return replace(document)


def _jsonpath_expression(path: str) -> str:
    if path.startswith('$'):
        return path
    if path.startswith('['):
        return f"${path}"
    return f"$.{path}"


def apply_rules(document: Any, rules: List[Dict[str, Any]], create_missing: bool = True) -> Any:
    """
    Apply manifest ``{path, value}`` rules.

    With ``create_missing`` false only paths already present are rewritten;
    drift comparison uses this so a dropped field is not put back.

    Raises:
        SanitizationFailure: If a rule's path is not a valid JSONPath
    """
    for rule in rules or []:
        path = rule.get('path')
        if path is None or 'value' not in rule or rule['value'] is None:
            continue
        try:
            expression = jsonpath_parse(_jsonpath_expression(str(path)))
        except Exception as e:
            raise SanitizationFailure(f"Invalid sanitize path '{path}': {e}") from e
        if create_missing:
            document = expression.update_or_create(document, rule['value'])
        else:
            document = expression.update(document, rule['value'])
    return document


class Sanitizer:
    """
    Runs the sanitization pipeline on parsed documents or fixture files.

    Example:
        sanitizer = Sanitizer()
        clean = sanitizer.sanitize(live_response, rules=spec.sanitize)
        sanitizer.sanitize_file('tests/fixtures/rest/milestone/list_all.json')
    """

    def __init__(self, normalize_times: bool = True, keep_backup: bool = False):
        self.normalize_times = normalize_times
        self.keep_backup = keep_backup
        self.logger = logging.getLogger("ghmock.sanitize")

    def sanitize(
        self,
        document: Any,
        rules: Optional[List[Dict[str, Any]]] = None,
        create_missing: bool = True
    ) -> Any:
        document = sanitize_identities(document)
        if self.normalize_times:
            document = normalize_timestamps(document)
        if rules:
            document = apply_rules(document, rules, create_missing)
        return document

    def sanitize_file(
        self,
        path: Union[str, Path],
        rules: Optional[List[Dict[str, Any]]] = None
    ) -> Path:
        """
        Sanitize a fixture file in place.

        A ``.backup`` copy is taken first. If the input cannot be parsed, a
        rule fails, or the result is not valid JSON, the backup is restored
        and SanitizationFailure is raised.
        """
        path = Path(path)
        if not path.is_file():
            raise SanitizationFailure(f"Fixture file not found: {path}")

        backup_path = path.with_name(path.name + '.backup')
        shutil.copy2(path, backup_path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
            document = self.sanitize(document, rules)
            # round-trip to prove the output is valid JSON before writing
            json.loads(json.dumps(document, allow_nan=False))
            write_json_file(path, document)
        except (ValueError, TypeError, SanitizationFailure) as e:
            shutil.copy2(backup_path, path)
            backup_path.unlink()
            self.logger.error(f"Sanitization of {path} failed, restored backup: {e}")
            if isinstance(e, SanitizationFailure):
                raise
            raise SanitizationFailure(f"Sanitization of {path} produced invalid JSON: {e}") from e

        if not self.keep_backup:
            backup_path.unlink()
        self.logger.debug(f"Sanitized {path}")
        return path
