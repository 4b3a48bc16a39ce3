"""
HTTP workload definitions and an in-process load runner.

A workload is a :class:`~workload.models.RunConfig` (concurrency and
duration) plus a :class:`~workload.scenarios.ScenarioDefinition` (one
GET and one named body check per iteration).  Workloads can be run
in-process with :func:`~workload.runner.run_workload` or handed to
Locust via the entrypoint in ``tests/performance/locustfile.py``.
"""

from workload.checks import Check, body_equals
from workload.models import ConfigurationError, IterationResult, Response, RunConfig
from workload.runner import LoadRunner, RunSummary, run_workload
from workload.scenarios import HELLO, USER_QUERY, ScenarioDefinition, get_scenario

__all__ = [
    "Check",
    "ConfigurationError",
    "HELLO",
    "IterationResult",
    "LoadRunner",
    "Response",
    "RunConfig",
    "RunSummary",
    "ScenarioDefinition",
    "USER_QUERY",
    "body_equals",
    "get_scenario",
    "run_workload",
]
