"""
ghmock Drift Reports

Set difference between a fixture fingerprint and a live fingerprint, and the
session-level summary aggregated across fixtures.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .fingerprint import SchemaFingerprint


@dataclass(frozen=True)
class DriftReport:
    """Structural differences for one fixture-vs-live comparison."""

    fixture: str
    added: FrozenSet[str] = frozenset()
    removed: FrozenSet[str] = frozenset()
    # (path, fixture kind, live kind); informational, not counted as drift
    changed: Tuple[Tuple[str, str, str], ...] = ()

    @property
    def has_drift(self) -> bool:
        return bool(self.added) or bool(self.removed)

    def render(self, verbose: bool = False) -> str:
        """
        Render as ``+ path`` / ``- path`` lines, each group sorted.

        Verbose mode also lists leaf-kind changes as ``~ path (old -> new)``.
        """
        lines = [f"+ {path}" for path in sorted(self.added)]
        lines.extend(f"- {path}" for path in sorted(self.removed))
        if verbose:
            lines.extend(f"~ {path} ({old} -> {new})" for path, old, new in self.changed)
        return '\n'.join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'fixture': self.fixture,
            'has_drift': self.has_drift,
            'added': sorted(self.added),
            'removed': sorted(self.removed),
            'changed': [
                {'path': path, 'fixture': old, 'live': new}
                for path, old, new in self.changed
            ],
        }


def compare_fingerprints(
    fixture: SchemaFingerprint,
    live: SchemaFingerprint,
    name: str = ""
) -> DriftReport:
    """
    Compare a stored fixture's fingerprint against a live one.

    added   = live paths not in the fixture
    removed = fixture paths not in the live response
    """
    fixture_paths = fixture.paths
    live_paths = live.paths

    fixture_kinds = fixture.kinds()
    live_kinds = live.kinds()
    changed = tuple(
        (path, '|'.join(sorted(fixture_kinds[path])), '|'.join(sorted(live_kinds[path])))
        for path in sorted(fixture_paths & live_paths)
        if fixture_kinds[path] != live_kinds[path]
    )

    return DriftReport(
        fixture=name,
        added=frozenset(live_paths - fixture_paths),
        removed=frozenset(fixture_paths - live_paths),
        changed=changed,
    )


class FixtureStatus(str, Enum):
    """Result of checking one fixture."""

    PASSED = "passed"
    DRIFTED = "drifted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FixtureOutcome:
    """Status of one fixture check, with its report or the reason it did not run."""

    fixture: str
    status: FixtureStatus
    report: Optional[DriftReport] = None
    reason: str = ""
    updated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'fixture': self.fixture,
            'status': self.status.value,
            'reason': self.reason,
            'updated': self.updated,
        }
        if self.report is not None:
            data['report'] = self.report.to_dict()
        return data


@dataclass
class DriftSummary:
    """Aggregated outcomes of a drift detection run."""

    outcomes: List[FixtureOutcome] = field(default_factory=list)

    def record(self, outcome: FixtureOutcome) -> FixtureOutcome:
        self.outcomes.append(outcome)
        return outcome

    def extend(self, other: 'DriftSummary') -> None:
        self.outcomes.extend(other.outcomes)

    def _with_status(self, status: FixtureStatus) -> List[FixtureOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def passed(self) -> List[FixtureOutcome]:
        return self._with_status(FixtureStatus.PASSED)

    @property
    def drifted(self) -> List[FixtureOutcome]:
        return self._with_status(FixtureStatus.DRIFTED)

    @property
    def skipped(self) -> List[FixtureOutcome]:
        return self._with_status(FixtureStatus.SKIPPED)

    @property
    def failed(self) -> List[FixtureOutcome]:
        return self._with_status(FixtureStatus.FAILED)

    @property
    def total_checked(self) -> int:
        """Fixtures actually compared or attempted; skips are excluded."""
        return len(self.outcomes) - len(self.skipped)

    @property
    def drifted_fixtures(self) -> List[str]:
        return [o.fixture for o in self.drifted]

    @property
    def has_drift(self) -> bool:
        return bool(self.drifted)

    @property
    def exit_code(self) -> int:
        """0 when nothing drifted or failed, 1 otherwise."""
        return 1 if self.drifted or self.failed else 0

    def render(self, verbose: bool = False) -> str:
        """Human-readable summary block."""
        lines = [
            "=" * 40,
            "Drift Detection Summary",
            "=" * 40,
            f"Total fixtures checked: {self.total_checked}",
            f"Passed: {len(self.passed)}",
            f"Fixtures with drift: {len(self.drifted)}",
            f"Failed: {len(self.failed)}",
            f"Skipped: {len(self.skipped)}",
        ]

        if self.drifted:
            lines.append("")
            lines.append("Drifted fixtures:")
            for outcome in self.drifted:
                suffix = " (updated)" if outcome.updated else ""
                lines.append(f"  - {outcome.fixture}{suffix}")
                if verbose and outcome.report is not None:
                    lines.extend(f"      {line}" for line in outcome.report.render(verbose=True).splitlines())

        if self.failed:
            lines.append("")
            lines.append("Failed fixtures:")
            lines.extend(f"  - {o.fixture}: {o.reason}" for o in self.failed)

        if verbose and self.skipped:
            lines.append("")
            lines.append("Skipped fixtures:")
            lines.extend(f"  - {o.fixture}: {o.reason}" for o in self.skipped)

        return '\n'.join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'summary': {
                'total_checked': self.total_checked,
                'passed': len(self.passed),
                'drifted': len(self.drifted),
                'failed': len(self.failed),
                'skipped': len(self.skipped),
                'has_drift': self.has_drift,
            },
            'drifted_fixtures': self.drifted_fixtures,
            'outcomes': [o.to_dict() for o in self.outcomes],
        }
