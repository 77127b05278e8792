"""
ghmock Mock Module

Registry-based request router that virtualizes the gh CLI and the platform's
REST/GraphQL APIs during tests.

This module provides:
- Declarative mock rules and YAML rule sets
- Session-scoped rule registry with default loading
- Request dispatcher with ordered fallback strategies
- Fixture resolver and call recorder
- Ephemeral resource tracking with guaranteed cleanup
"""

from .rules import (
    Category,
    RuleOrigin,
    FixtureRef,
    InlineBody,
    MockRule,
    load_rule_set,
)
from .fixtures import FixtureResolver
from .recorder import CallRecord, CallRecorder
from .registry import RegistrySession, SessionConfig, open_session
from .dispatcher import RequestDispatcher, DispatchResult, classify_gh_args
from .resources import ResourceTracker, TrackedResource, CleanupReport

__all__ = [
    # Rules
    'Category',
    'RuleOrigin',
    'FixtureRef',
    'InlineBody',
    'MockRule',
    'load_rule_set',

    # Fixtures and calls
    'FixtureResolver',
    'CallRecord',
    'CallRecorder',

    # Registry
    'RegistrySession',
    'SessionConfig',
    'open_session',

    # Dispatcher
    'RequestDispatcher',
    'DispatchResult',
    'classify_gh_args',

    # Resources
    'ResourceTracker',
    'TrackedResource',
    'CleanupReport',
]

__version__ = '1.0.0'
