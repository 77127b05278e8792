"""
ghmock

Test harness for code that drives the gh CLI and the GitHub REST/GraphQL APIs.

Subpackages:
- ghmock.mock: rule registry, request dispatcher and fixture resolution
- ghmock.drift: schema drift detection against live responses
- ghmock.testing: pytest fixtures (registered as a pytest plugin)
"""

__version__ = '1.0.0'
