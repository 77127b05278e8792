"""
ghmock Fixture Recorder

Re-records fixtures from live responses: probe, write, sanitize, then stamp
``last_recorded`` in the manifest.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..common.errors import GhMockError, ManifestError
from ..common.utils import write_json_file
from .manifest import FixtureManifest
from .probe import LiveProbe
from .sanitize import Sanitizer


@dataclass
class RecordingResult:
    """Outcome of a recording run."""

    recorded: List[Path] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recorded': [str(p) for p in self.recorded],
            'failed': [{'fixture': f, 'reason': r} for f, r in self.failed],
        }


class FixtureRecorder:
    """
    Records manifest fixtures from a live probe.

    Example:
        recorder = FixtureRecorder(manifest, 'tests/fixtures', GhCliProbe())
        recorder.record('milestone', 'list_all')
    """

    def __init__(
        self,
        manifest: FixtureManifest,
        fixtures_root: Union[str, Path],
        probe: LiveProbe,
        sanitizer: Optional[Sanitizer] = None,
        save_manifest: bool = True,
    ):
        self.manifest = manifest
        self.fixtures_root = Path(fixtures_root)
        self.probe = probe
        self.sanitizer = sanitizer or Sanitizer()
        self.save_manifest = save_manifest
        self.logger = logging.getLogger("ghmock.recorder")

    def record(self, domain: str, name: str, captures: Optional[Dict[str, Any]] = None) -> Path:
        """
        Record one fixture.

        The previous fixture file, if any, is restored when probing or
        sanitizing fails, so an unsanitized response is never left behind.

        Raises:
            ManifestError: If the entry is missing or incomplete
            LiveProbeFailure: If the live request fails
            SanitizationFailure: If sanitization fails
        """
        spec = self.manifest.get(domain, name)
        problems = spec.validate()
        if problems:
            raise ManifestError(f"Cannot record {spec.fixture_id}: {', '.join(problems)}")

        self.logger.info(f"Recording fixture: {spec.fixture_id}")
        data = self.probe(spec.to_probe_request(captures))

        output = spec.fixture_path(self.fixtures_root)
        previous = output.with_name(output.name + '.previous')
        had_previous = output.exists()
        if had_previous:
            shutil.copy2(output, previous)

        try:
            write_json_file(output, data)
            self.sanitizer.sanitize_file(output, spec.sanitize)
        except Exception:
            if had_previous:
                shutil.move(str(previous), str(output))
            elif output.exists():
                output.unlink()
            raise

        if had_previous:
            previous.unlink()

        self.manifest.mark_recorded(domain, name)
        if self.save_manifest and self.manifest.path is not None:
            self.manifest.save()

        self.logger.info(f"Recorded: {output}")
        return output

    def record_domain(self, domain: str) -> RecordingResult:
        result = RecordingResult()
        if not self.manifest.has_domain(domain):
            self.logger.warning(f"No fixtures defined for domain: {domain}")
            return result

        for spec in self.manifest.iter_domain(domain):
            if spec.is_synthetic:
                self.logger.debug(f"Skipping synthetic fixture: {spec.fixture_id}")
                continue
            try:
                result.recorded.append(self.record(spec.domain, spec.name))
            except GhMockError as e:
                self.logger.error(f"Failed to record {spec.fixture_id}: {e}")
                result.failed.append((spec.fixture_id, str(e)))

        self.logger.info(
            f"Domain {domain}: {len(result.recorded)} fixtures recorded, {len(result.failed)} failed"
        )
        return result

    def record_all(self) -> RecordingResult:
        result = RecordingResult()
        for domain in self.manifest.domains():
            domain_result = self.record_domain(domain)
            result.recorded.extend(domain_result.recorded)
            result.failed.extend(domain_result.failed)
        return result
