#!/usr/bin/env python3
"""
ghmock-drift - schema drift detection for recorded fixtures

Convenience wrapper for running from a checkout without installing.
The actual implementation is in src/ghmock/drift/cli.py

Usage:
    python ghmock-drift.py --all
    python ghmock-drift.py --fixture identity viewer -v

Run with --help for all options.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from ghmock.drift.cli import main

if __name__ == '__main__':
    sys.exit(main())
