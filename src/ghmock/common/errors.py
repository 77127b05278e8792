"""
ghmock Errors

Exception hierarchy shared by the mock registry and the drift detector.
"""

from typing import Any, Dict, Optional


class GhMockError(Exception):
    """Base class for all ghmock errors."""


class RuleError(GhMockError):
    """A mock rule could not be constructed (bad pattern or category)."""


class RuleSetError(GhMockError):
    """A declarative rule set file could not be parsed."""


class UnregisteredRequest(GhMockError):
    """No rule matched a GraphQL or REST request after all fallback passes."""

    def __init__(self, category: str, signature: str, payload: Optional[Dict[str, Any]] = None):
        self.category = category
        self.signature = signature
        self.payload = payload or {}
        super().__init__(f"No mock registered for {category} request: {signature}")


class FixtureNotFound(GhMockError):
    """Referenced fixture does not exist under any searched root."""

    def __init__(self, path: str, searched: Optional[list] = None):
        self.path = path
        self.searched = searched or []
        message = f"Mock fixture not found: {path}"
        if self.searched:
            message += f" (searched: {', '.join(str(p) for p in self.searched)})"
        super().__init__(message)


class MalformedResponse(GhMockError):
    """A resolved response body is not valid JSON."""


class LiveProbeFailure(GhMockError):
    """The live probe could not fetch a fresh response."""


class SchemaExtractionFailure(GhMockError):
    """Input to the fingerprint extractor is not valid JSON."""


class SanitizationFailure(GhMockError):
    """Sanitized fixture output is not valid JSON."""


class ManifestError(GhMockError):
    """Fixture manifest is missing, unreadable or has an invalid entry."""
