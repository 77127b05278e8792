"""
ghmock-drift command line interface.

Detects schema drift between recorded fixtures and live API responses.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from ..common.errors import ManifestError
from ..common.utils import get_fixtures_root
from .detector import DriftConfig, DriftDetector
from .manifest import DEFAULT_MANIFEST_NAME, FixtureManifest
from .probe import GhCliProbe, HttpProbe
from .report import DriftSummary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ghmock-drift',
        description='Detect schema drift between recorded fixtures and live API responses',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check every fixture in the manifest
  ghmock-drift --all

  # Check one domain with per-field output
  ghmock-drift --domain milestone -v

  # Check a single fixture and re-record it if it drifted
  ghmock-drift --fixture identity viewer --update

  # Use the HTTP API directly (token from GITHUB_TOKEN) and save a report
  ghmock-drift --all --probe http --report drift_report.json

Exit codes:
  0  no drift
  1  drift detected, a fixture failed, or the environment is incomplete
        """
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument('--all',
                        action='store_true',
                        help='Check all fixtures in the manifest')
    target.add_argument('--domain',
                        metavar='NAME',
                        help='Check all fixtures in one domain')
    target.add_argument('--fixture',
                        nargs=2,
                        metavar=('DOMAIN', 'NAME'),
                        help='Check a single fixture')

    parser.add_argument('-v', '--verbose',
                        action='store_true',
                        help='Show per-field drift and skipped fixtures')

    parser.add_argument('--update',
                        action='store_true',
                        help='Re-record fixtures that drifted')

    parser.add_argument('--fixtures-dir',
                        help='Fixture root (default: $GHMOCK_FIXTURES_DIR or tests/fixtures)')

    parser.add_argument('--manifest',
                        help='Recording manifest (default: $GHMOCK_MANIFEST or '
                             '<fixtures-dir>/recording_manifest.yaml)')

    parser.add_argument('--probe',
                        choices=['gh', 'http'],
                        default='gh',
                        help='How to fetch live responses (default: gh)')

    parser.add_argument('--report',
                        metavar='FILE',
                        help='Save drift report to JSON file')

    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='[%(levelname)s] %(message)s',
    )


def print_summary(summary: DriftSummary, verbose: bool = False) -> None:
    print()
    print(summary.render(verbose=verbose))
    print()
    if summary.has_drift:
        print(f"⚠️  Drift detected in {len(summary.drifted)} fixture(s)")
        if not any(o.updated for o in summary.drifted):
            print("   To update fixtures with the new schema, run:")
            print("   ghmock-drift --all --update")
    elif summary.failed:
        print(f"❌ {len(summary.failed)} fixture(s) could not be checked")
    else:
        print("✓ No schema drift detected")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.all or args.domain or args.fixture):
        parser.print_help()
        return 0

    setup_logging(args.verbose)

    fixtures_root = Path(args.fixtures_dir) if args.fixtures_dir else get_fixtures_root()
    manifest_path = Path(
        args.manifest
        or os.environ.get('GHMOCK_MANIFEST')
        or fixtures_root / DEFAULT_MANIFEST_NAME
    )

    if args.probe == 'gh':
        probe = GhCliProbe()
        if not probe.is_available():
            print("❌ gh CLI is required but not installed", file=sys.stderr)
            return 1
    else:
        probe = HttpProbe()

    try:
        manifest = FixtureManifest.load(manifest_path)
    except ManifestError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print("🔍 ghmock Drift Detection")
    print(f"   Manifest: {manifest_path}")
    print(f"   Fixtures: {fixtures_root}")
    if args.update:
        print("   Update mode: drifted fixtures will be re-recorded")

    detector = DriftDetector(
        manifest,
        fixtures_root,
        probe,
        config=DriftConfig(verbose=args.verbose, update=args.update),
    )

    if args.fixture:
        summary = detector.check_fixture(*args.fixture)
    elif args.domain:
        summary = detector.check_domain(args.domain)
    else:
        summary = detector.check_all()

    print_summary(summary, args.verbose)

    if args.report:
        with open(args.report, 'w', encoding='utf-8') as f:
            json.dump(summary.to_dict(), f, indent=2)
        print(f"\n📄 Report saved to: {args.report}")

    return summary.exit_code


if __name__ == '__main__':
    sys.exit(main())
