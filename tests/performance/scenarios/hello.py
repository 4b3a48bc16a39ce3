"""
``/hello`` Locust scenario.

Defines :class:`HelloUser`: each iteration requests ``/hello``, checks
that the body is exactly ``hello world!`` (the ``Query successfully``
check), then thinks for 10 seconds.
"""

from __future__ import annotations

from locust import constant, tag

from tests.performance.scenarios.base import WorkloadUser, configured
from workload.scenarios import HELLO


@tag(HELLO.tag)
class HelloUser(WorkloadUser):
    """Paced greeting workload."""

    definition = configured(HELLO)
    wait_time = constant(definition.pacing_seconds or 0)
