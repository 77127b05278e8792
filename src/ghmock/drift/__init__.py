"""
ghmock Drift Module

Detects schema drift between recorded fixtures and live API responses.

This module provides:
- Schema fingerprints (field paths and leaf kinds)
- Fixture-vs-live comparison and run summaries
- Recording manifest, live probes and fixture sanitizer
- Fixture re-recording for drifted fixtures
"""

from .fingerprint import (
    SchemaFingerprint,
    extract_fingerprint,
    fingerprint_from_text,
    fingerprint_file,
)
from .report import (
    DriftReport,
    DriftSummary,
    FixtureOutcome,
    FixtureStatus,
    compare_fingerprints,
)
from .manifest import FixtureManifest, FixtureSpec, ProbeRequest
from .probe import LiveProbe, GhCliProbe, HttpProbe
from .sanitize import Sanitizer
from .recorder import FixtureRecorder, RecordingResult
from .detector import DriftConfig, DriftDetector

__all__ = [
    # Fingerprints
    'SchemaFingerprint',
    'extract_fingerprint',
    'fingerprint_from_text',
    'fingerprint_file',

    # Reports
    'DriftReport',
    'DriftSummary',
    'FixtureOutcome',
    'FixtureStatus',
    'compare_fingerprints',

    # Manifest and live access
    'FixtureManifest',
    'FixtureSpec',
    'ProbeRequest',
    'LiveProbe',
    'GhCliProbe',
    'HttpProbe',

    # Recording
    'Sanitizer',
    'FixtureRecorder',
    'RecordingResult',

    # Detection
    'DriftConfig',
    'DriftDetector',
]

__version__ = '1.0.0'
