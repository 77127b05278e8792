"""
ghmock Drift Detector

Compares the structure of recorded fixtures against live responses.

For each manifest entry:
1. Skip entries that need ephemeral setup, synthetic fixtures and endpoints
   with unresolved placeholders
2. Fingerprint the stored fixture
3. Probe the live API, pass the response through the sanitizer and
   fingerprint it
4. Report added/removed paths; optionally re-record drifted fixtures
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..common.errors import GhMockError
from .fingerprint import extract_fingerprint, fingerprint_file
from .manifest import FixtureManifest, FixtureSpec
from .probe import LiveProbe
from .recorder import FixtureRecorder
from .report import DriftSummary, FixtureOutcome, FixtureStatus, compare_fingerprints
from .sanitize import Sanitizer


@dataclass
class DriftConfig:
    """Configuration for a drift detection run."""

    verbose: bool = False
    update: bool = False  # re-record drifted fixtures
    sanitize_live: bool = True  # rewrite values only; paths are never added


class DriftDetector:
    """
    Schema drift detector.

    Example:
        manifest = FixtureManifest.load('tests/fixtures/recording_manifest.yaml')
        detector = DriftDetector(manifest, 'tests/fixtures', GhCliProbe())
        summary = detector.check_all()
        print(summary.render())
    """

    def __init__(
        self,
        manifest: FixtureManifest,
        fixtures_root: Union[str, Path],
        probe: LiveProbe,
        config: Optional[DriftConfig] = None,
        recorder: Optional[FixtureRecorder] = None,
        sanitizer: Optional[Sanitizer] = None,
    ):
        self.manifest = manifest
        self.fixtures_root = Path(fixtures_root)
        self.probe = probe
        self.config = config or DriftConfig()
        self.sanitizer = sanitizer or Sanitizer()
        self.recorder = recorder
        if self.recorder is None and self.config.update:
            self.recorder = FixtureRecorder(manifest, self.fixtures_root, probe, self.sanitizer)
        self.logger = logging.getLogger("ghmock.drift")

    def _skip_reason(self, spec: FixtureSpec) -> Optional[str]:
        if spec.requires_setup:
            return "requires setup"
        if spec.is_synthetic:
            return "synthetic fixture"
        return None

    def check_spec(self, spec: FixtureSpec) -> FixtureOutcome:
        """Check one manifest entry. Errors become FAILED outcomes."""
        fixture_id = spec.fixture_id

        reason = self._skip_reason(spec)
        if reason is None:
            problems = spec.validate()
            if problems:
                self.logger.error(f"{fixture_id}: {', '.join(problems)}")
                return FixtureOutcome(fixture_id, FixtureStatus.FAILED, reason=', '.join(problems))
            if spec.type == "rest" and spec.is_dynamic():
                reason = f"dynamic endpoint {spec.resolve_endpoint()}"

        if reason:
            self.logger.debug(f"Skipping {fixture_id}: {reason}")
            return FixtureOutcome(fixture_id, FixtureStatus.SKIPPED, reason=reason)

        path = spec.fixture_path(self.fixtures_root)
        if not path.is_file():
            self.logger.warning(f"Fixture not found: {path}")
            return FixtureOutcome(fixture_id, FixtureStatus.FAILED, reason=f"fixture not found: {path}")

        try:
            stored = fingerprint_file(path)
            live_document = self.probe(spec.to_probe_request())
            if self.config.sanitize_live:
                live_document = self.sanitizer.sanitize(live_document, spec.sanitize, create_missing=False)
            live = extract_fingerprint(live_document)
        except GhMockError as e:
            self.logger.warning(f"Failed to check {fixture_id}: {e}")
            return FixtureOutcome(fixture_id, FixtureStatus.FAILED, reason=str(e))

        report = compare_fingerprints(stored, live, fixture_id)
        if not report.has_drift:
            self.logger.debug(f"No drift: {fixture_id}")
            return FixtureOutcome(fixture_id, FixtureStatus.PASSED, report=report)

        self.logger.warning(
            f"[DRIFT] {fixture_id}: {len(report.added)} new, {len(report.removed)} missing fields"
        )
        outcome = FixtureOutcome(fixture_id, FixtureStatus.DRIFTED, report=report)

        if self.config.update and self.recorder is not None:
            try:
                self.recorder.record(spec.domain, spec.name)
                outcome.updated = True
            except GhMockError as e:
                self.logger.error(f"Failed to update {fixture_id}: {e}")
                outcome.reason = f"update failed: {e}"

        return outcome

    def check_fixture(self, domain: str, name: str) -> DriftSummary:
        summary = DriftSummary()
        try:
            spec = self.manifest.get(domain, name)
        except GhMockError as e:
            self.logger.error(str(e))
            summary.record(FixtureOutcome(f"{domain}/{name}", FixtureStatus.FAILED, reason=str(e)))
            return summary
        summary.record(self.check_spec(spec))
        return summary

    def check_domain(self, domain: str) -> DriftSummary:
        summary = DriftSummary()
        if not self.manifest.has_domain(domain):
            self.logger.warning(f"No fixtures defined for domain: {domain}")
            return summary

        self.logger.info(f"Checking domain: {domain}")
        for spec in self.manifest.iter_domain(domain):
            summary.record(self.check_spec(spec))

        checked = summary.total_checked
        if summary.drifted:
            self.logger.warning(f"Domain {domain}: {len(summary.drifted)}/{checked} fixtures have drift")
        else:
            self.logger.info(f"Domain {domain}: {checked} fixtures checked, no drift")
        return summary

    def check_all(self) -> DriftSummary:
        summary = DriftSummary()
        for domain in self.manifest.domains():
            summary.extend(self.check_domain(domain))
        return summary
