"""
Test suite for the workload toolkit.

This package contains:
- unit/: models, checks, scenarios, runner, thresholds and CLI tests
  against fake sessions (no network)
- integration/: target app tests and short live runs over real HTTP
- performance/: the Locust entrypoint and thresholds used for real
  load runs (not collected by pytest)
"""
