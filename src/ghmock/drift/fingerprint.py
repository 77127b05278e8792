"""
ghmock Schema Fingerprints

Structural summary of a JSON document: the set of (field-path, leaf-kind)
pairs, independent of key order and of scalar values.

Rules:
- Object keys become dot-joined path segments; null is a leaf kind
- Non-empty arrays are sampled at element 0 under a "[*]" segment
- Empty arrays and empty objects emit a marker so that "present but empty"
  differs from "absent"
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, List, Set, Tuple, Union

from ..common.errors import SchemaExtractionFailure

WILDCARD = "[*]"
ROOT_PATH = "."

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
EMPTY_ARRAY = "empty-array"
EMPTY_OBJECT = "empty-object"


def leaf_kind(value: Any) -> str:
    """JSON kind of a scalar value."""
    # bool is a subclass of int, so it must be checked first
    if isinstance(value, bool):
        return BOOLEAN
    if value is None:
        return NULL
    if isinstance(value, (int, float)):
        return NUMBER
    if isinstance(value, str):
        return STRING
    raise SchemaExtractionFailure(f"Value of type {type(value).__name__} is not JSON")


def _join(path: str, segment: str) -> str:
    return segment if path == ROOT_PATH else f"{path}.{segment}"


@dataclass(frozen=True)
class SchemaFingerprint:
    """Immutable set of (path, leaf kind) pairs for one document."""

    entries: FrozenSet[Tuple[str, str]]

    @property
    def paths(self) -> FrozenSet[str]:
        return frozenset(path for path, _ in self.entries)

    def kinds(self) -> Dict[str, Set[str]]:
        """Map each path to the leaf kinds observed there."""
        result: Dict[str, Set[str]] = {}
        for path, kind in self.entries:
            result.setdefault(path, set()).add(kind)
        return result

    def sorted_entries(self) -> List[Tuple[str, str]]:
        return sorted(self.entries)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self.sorted_entries())

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, item: Union[str, Tuple[str, str]]) -> bool:
        if isinstance(item, str):
            return item in self.paths
        return item in self.entries

    def to_lines(self) -> List[str]:
        """One ``path: kind`` line per entry, sorted."""
        return [f"{path}: {kind}" for path, kind in self.sorted_entries()]


def extract_fingerprint(document: Any) -> SchemaFingerprint:
    """
    Build the fingerprint of a parsed JSON document.

    Example:
        extract_fingerprint({"items": [{"id": 1}], "next": None})
        # {("items.[*].id", "number"), ("next", "null")}
    """
    entries: Set[Tuple[str, str]] = set()

    def walk(value: Any, path: str) -> None:
        if isinstance(value, dict):
            if not value:
                entries.add((path, EMPTY_OBJECT))
            for key, child in value.items():
                walk(child, _join(path, str(key)))
        elif isinstance(value, (list, tuple)):
            if value:
                walk(value[0], _join(path, WILDCARD))
            else:
                entries.add((path, EMPTY_ARRAY))
        else:
            entries.add((path, leaf_kind(value)))

    walk(document, ROOT_PATH)
    return SchemaFingerprint(frozenset(entries))


def fingerprint_from_text(text: Union[str, bytes]) -> SchemaFingerprint:
    """
    Build a fingerprint from JSON text.

    Raises:
        SchemaExtractionFailure: If the text is not valid JSON
    """
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
        raise SchemaExtractionFailure(f"Cannot extract schema from invalid JSON: {e}") from e
    return extract_fingerprint(document)


def fingerprint_file(path: Union[str, Path]) -> SchemaFingerprint:
    """Build a fingerprint from a JSON file."""
    try:
        text = Path(path).read_text(encoding='utf-8')
    except OSError as e:
        raise SchemaExtractionFailure(f"Cannot read {path}: {e}") from e
    return fingerprint_from_text(text)
