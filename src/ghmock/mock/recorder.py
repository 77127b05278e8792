"""
ghmock Call Recorder

Append-only log of dispatched request signatures with verification helpers.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .rules import Category


def _utc_now() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


@dataclass(frozen=True)
class CallRecord:
    """One dispatched request."""

    category: Category
    signature: str
    timestamp: str = field(default_factory=_utc_now)

    def to_line(self) -> str:
        """Format as a call log line: timestamp|category|signature."""
        return f"{self.timestamp}|{self.category.value}|{self.signature}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'category': self.category.value,
            'signature': self.signature,
        }


class CallRecorder:
    """
    Records every dispatch in call order.

    Patterns passed to the query methods are regular expressions searched
    against each recorded signature.

    Example:
        recorder.record(Category.GRAPHQL, 'fetchThing')
        assert recorder.call_count('fetchThing') == 1
    """

    def __init__(self, log_path: Optional[Union[str, Path]] = None):
        """
        Initialize recorder.

        Args:
            log_path: Optional file mirroring the log, one line per call
        """
        self.log_path = Path(log_path) if log_path else None
        self._calls: List[CallRecord] = []
        if self.log_path:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self.log_path.write_text('', encoding='utf-8')

    @property
    def calls(self) -> Tuple[CallRecord, ...]:
        return tuple(self._calls)

    def __len__(self) -> int:
        return len(self._calls)

    def record(self, category: Category, signature: str) -> CallRecord:
        """Append one call record."""
        entry = CallRecord(category=Category.parse(category), signature=signature)
        self._calls.append(entry)
        if self.log_path:
            with open(self.log_path, 'a', encoding='utf-8') as f:
                # Multi-line GraphQL documents are flattened to keep one call per line
                f.write(entry.to_line().replace('\n', ' ') + '\n')
        return entry

    def clear(self) -> None:
        """Empty the log."""
        self._calls.clear()
        if self.log_path and self.log_path.exists():
            self.log_path.write_text('', encoding='utf-8')

    def matching(self, pattern: str, category: Optional[Category] = None) -> List[CallRecord]:
        """Records whose signature matches pattern, optionally filtered by category."""
        regex = re.compile(pattern)
        wanted = Category.parse(category) if category is not None else None
        return [
            c for c in self._calls
            if (wanted is None or c.category == wanted) and regex.search(c.signature)
        ]

    def was_called(self, pattern: str, category: Optional[Category] = None) -> bool:
        return bool(self.matching(pattern, category))

    def call_count(self, pattern: str, category: Optional[Category] = None) -> int:
        return len(self.matching(pattern, category))

    def assert_called_at_least(self, pattern: str, min_count: int = 1) -> None:
        """
        Assert a pattern was dispatched at least ``min_count`` times.

        Raises:
            AssertionError: With the full call log as diagnostic
        """
        actual = self.call_count(pattern)
        if actual < min_count:
            lines = [
                f"Mock was not called enough times with pattern: {pattern}",
                f"Expected at least: {min_count}",
                f"Actual: {actual}",
                "All calls:",
            ]
            lines.extend(f"  {c.to_line()}" for c in self._calls)
            if not self._calls:
                lines.append("  (no calls)")
            raise AssertionError('\n'.join(lines))

    def dump(self) -> str:
        """Full call log as text."""
        if not self._calls:
            return "(no calls)"
        return '\n'.join(c.to_line() for c in self._calls)
